"""Shared helpers."""

from .locks import KeyedLock

__all__ = ["KeyedLock"]
