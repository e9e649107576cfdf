"""Tile collision, player animation data and sound mixing for a side-scrolling platform engine."""

__version__ = "0.1.0"