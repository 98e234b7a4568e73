"""Resolvarr - orchestrates operator-supplied stream resolver programs."""

__version__ = "0.1.0"
