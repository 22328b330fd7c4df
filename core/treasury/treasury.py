"""
Treasury - the guarded balance.

Accepts unconditional deposits and releases funds only through an
atomic withdraw-and-send.
"""

import logging
import threading

from core.errors import BalanceOverflow, InsufficientFunds, InvalidAmount, TransferFailed
from .ledger import Ledger


logger = logging.getLogger(__name__)


# Upper bound of the balance representation (unsigned 256-bit)
MAX_BALANCE = 2**256 - 1


def validate_amount(amount) -> int:
    """Reject negative and non-integer amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmount(amount)
    return amount


class Treasury:
    """
    Tracks the guarded balance.

    Invariants:
    - Balance is never negative
    - Balance never exceeds MAX_BALANCE
    - Withdraw either decrements AND sends, or does neither
    """

    def __init__(self, ledger: Ledger, initial_balance: int = 0):
        """
        Initialize treasury.

        Args:
            ledger: Ledger that receives released funds
            initial_balance: Starting balance (default: 0)
        """
        validate_amount(initial_balance)
        if initial_balance > MAX_BALANCE:
            raise BalanceOverflow(0, initial_balance, MAX_BALANCE)

        self.ledger = ledger
        self._balance = initial_balance
        self._lock = threading.Lock()

    @property
    def balance(self) -> int:
        with self._lock:
            return self._balance

    def deposit(self, amount: int) -> int:
        """
        Add funds to the treasury. Anyone may deposit.

        Args:
            amount: Amount to add

        Returns:
            New balance

        Raises:
            InvalidAmount: If amount is negative or not an integer
            BalanceOverflow: If the new balance would exceed MAX_BALANCE
        """
        validate_amount(amount)

        with self._lock:
            if self._balance + amount > MAX_BALANCE:
                raise BalanceOverflow(self._balance, amount, MAX_BALANCE)
            self._balance += amount
            balance = self._balance

        logger.info(f"Deposited {amount}, balance={balance}")
        return balance

    def can_afford(self, amount: int) -> bool:
        """Check whether the balance covers amount."""
        with self._lock:
            return self._balance >= amount

    def withdraw(self, recipient: str, amount: int) -> int:
        """
        Decrease the balance and send amount to recipient.

        Args:
            recipient: Recipient of the funds
            amount: Amount to release

        Returns:
            New balance

        Raises:
            InvalidAmount: If amount is negative or not an integer
            InsufficientFunds: If balance < amount
            TransferFailed: If the ledger send fails (balance restored)
        """
        validate_amount(amount)

        with self._lock:
            if self._balance < amount:
                raise InsufficientFunds(self._balance, amount)

            self._balance -= amount
            try:
                self.ledger.send(recipient, amount)
            except Exception as e:
                self._balance += amount
                logger.error(
                    f"Ledger send of {amount} to {recipient} failed, "
                    f"balance restored: {e}",
                    exc_info=True,
                )
                raise TransferFailed(recipient, amount, e) from e

            balance = self._balance

        logger.info(f"Withdrew {amount} to {recipient}, balance={balance}")
        return balance
