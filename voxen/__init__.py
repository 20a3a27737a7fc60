"""Voxen - Discord-style chat client on a backend-as-a-service gateway"""

__version__ = "0.1.0"
