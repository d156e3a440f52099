"""Game domain services: rules, visibility and change propagation.

This package contains the game logic that HTTP routes and socket
handlers call into, keeping transport concerns separated from core game
mechanics.
"""
