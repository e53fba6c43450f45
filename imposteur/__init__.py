"""Multiplayer impostor word game: TCP server, game rules and terminal client."""

__version__ = "1.0.0"