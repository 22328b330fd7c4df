"""
Treasury tests.

Tests deposits, affordability and atomic withdraw-and-send.
"""

from unittest.mock import Mock

import pytest

from core.errors import BalanceOverflow, InsufficientFunds, InvalidAmount, TransferFailed
from core.treasury import MAX_BALANCE, InMemoryLedger, Treasury


@pytest.fixture
def treasury(ledger):
    return Treasury(ledger)


@pytest.mark.unit
class TestTreasuryDeposit:
    """Test deposits."""

    def test_starts_empty(self, treasury):
        """Treasury starts with zero balance."""
        assert treasury.balance == 0

    def test_deposit_increases_balance(self, treasury):
        """Deposit adds to the balance and returns the new balance."""
        assert treasury.deposit(100) == 100
        assert treasury.deposit(20) == 120
        assert treasury.balance == 120

    def test_zero_deposit_accepted(self, treasury):
        """Zero deposit is accepted and changes nothing."""
        treasury.deposit(0)
        assert treasury.balance == 0

    @pytest.mark.parametrize("amount", [-1, 1.5, "10", None, True])
    def test_invalid_amount_rejected(self, treasury, amount):
        """Negative and non-integer amounts are rejected."""
        with pytest.raises(InvalidAmount):
            treasury.deposit(amount)

        assert treasury.balance == 0

    def test_overflow_rejected(self, treasury):
        """Deposit beyond MAX_BALANCE fails and leaves balance unchanged."""
        treasury.deposit(MAX_BALANCE)

        with pytest.raises(BalanceOverflow):
            treasury.deposit(1)

        assert treasury.balance == MAX_BALANCE

    def test_deposit_then_can_afford(self, treasury):
        """Deposit(x) followed by CanAfford(x) is true."""
        treasury.deposit(75)

        assert treasury.can_afford(75)
        assert not treasury.can_afford(76)


@pytest.mark.unit
class TestTreasuryWithdraw:
    """Test withdraw-and-send."""

    def test_withdraw_sends_exact_amount(self, treasury, ledger):
        """Withdraw reduces balance and sends the amount to the recipient."""
        treasury.deposit(100)

        assert treasury.withdraw("r", 40) == 60
        assert ledger.received("r") == 40
        assert ledger.payouts == [("r", 40)]

    def test_can_afford_reflects_withdrawal(self, treasury):
        """After Withdraw(x), CanAfford reflects the reduced balance exactly."""
        treasury.deposit(100)
        treasury.withdraw("r", 30)

        assert treasury.can_afford(70)
        assert not treasury.can_afford(71)

    def test_insufficient_funds(self, treasury, ledger):
        """Withdraw beyond balance fails with nothing sent."""
        treasury.deposit(40)

        with pytest.raises(InsufficientFunds) as exc_info:
            treasury.withdraw("r", 50)

        assert exc_info.value.balance == 40
        assert exc_info.value.amount == 50
        assert treasury.balance == 40
        assert ledger.payouts == []

    def test_ledger_failure_restores_balance(self):
        """Failed send leaves the balance untouched."""
        ledger = Mock()
        ledger.send.side_effect = RuntimeError("settlement offline")
        treasury = Treasury(ledger, initial_balance=100)

        with pytest.raises(TransferFailed) as exc_info:
            treasury.withdraw("r", 50)

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert treasury.balance == 100

    def test_initial_balance(self):
        """Initial balance is validated and applied."""
        assert Treasury(InMemoryLedger(), initial_balance=10).balance == 10

        with pytest.raises(InvalidAmount):
            Treasury(InMemoryLedger(), initial_balance=-1)
