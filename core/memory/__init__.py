"""Append-only audit trail for vault events."""

from .memory import MemoryStore

__all__ = ["MemoryStore"]
