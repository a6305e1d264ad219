"""Poro Hunt: a timed spawn-and-catch game for Telegram groups."""

__version__ = "0.1.0"
