"""Offline cache of daily prayer times with periodic background refresh."""

__version__ = "0.1.0"
