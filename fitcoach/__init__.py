"""Conversational fitness coach core."""

__version__ = "0.1.0"
