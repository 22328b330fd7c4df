"""
Ledger capability - moves value out of the vault once authorized.

The vault never moves value itself. It hands authorized payouts to a ledger.
"""

import logging
import threading
from collections import defaultdict
from typing import Dict, List, Protocol, Tuple


logger = logging.getLogger(__name__)


class Ledger(Protocol):
    """Receives funds released by the treasury."""

    def send(self, recipient: str, amount: int) -> None:
        """
        Send amount to recipient.

        Raises:
            Exception: Any failure; the treasury rolls back on error
        """
        ...


class InMemoryLedger:
    """
    Ledger that records payouts in memory.

    Used for tests and local runs where no real settlement layer exists.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._received: Dict[str, int] = defaultdict(int)
        self.payouts: List[Tuple[str, int]] = []

    def send(self, recipient: str, amount: int) -> None:
        with self._lock:
            self._received[recipient] += amount
            self.payouts.append((recipient, amount))
        logger.debug(f"Ledger sent {amount} to {recipient}")

    def received(self, recipient: str) -> int:
        """Total amount sent to recipient."""
        with self._lock:
            return self._received.get(recipient, 0)
