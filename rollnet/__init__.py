"""Rollback netcode building blocks and the Vector War sample game."""

__version__ = "1.0.0"