"""HTTP API for the kitchen display"""
