"""Dota Fantasy - tournament import backend for a Dota 2 fantasy league."""

__version__ = "1.0.0"
