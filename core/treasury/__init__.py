"""Guarded balance and the ledger capability it pays out through."""

from .ledger import InMemoryLedger, Ledger
from .treasury import MAX_BALANCE, Treasury

__all__ = ["Treasury", "Ledger", "InMemoryLedger", "MAX_BALANCE"]
