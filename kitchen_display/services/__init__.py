"""Clients for the services around the kitchen screen"""
