"""Order store, transitions, history and timers for the kitchen screen"""
