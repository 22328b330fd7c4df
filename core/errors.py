"""
Vault error hierarchy.

Every failure is local to the call that raised it:
- No partial state is left behind
- No event is emitted
- No retry happens inside the vault
"""

from typing import Optional


class VaultError(Exception):
    """Base class for vault errors."""


class NotAuthorized(VaultError):
    """Raised when the caller lacks the role an operation requires."""

    def __init__(self, caller: str, role: str):
        self.caller = caller
        self.role = role
        super().__init__(f"Caller {caller!r} is not {role}")


class InsufficientFunds(VaultError):
    """Raised when the balance is below the amount at an authoritative check."""

    def __init__(self, balance: int, amount: int, request_id: Optional[int] = None):
        self.balance = balance
        self.amount = amount
        self.request_id = request_id
        message = f"Insufficient funds: balance={balance}, amount={amount}"
        if request_id is not None:
            message += f" (request {request_id})"
        super().__init__(message)


class InvalidRequestId(VaultError):
    """Raised when a request id is unknown or no longer accepts changes."""

    def __init__(self, request_id, reason: str = "does not exist"):
        self.request_id = request_id
        super().__init__(f"Transfer request {request_id!r} {reason}")


class RequestAlreadyExecuted(InvalidRequestId):
    """Raised when a request has already been executed."""

    def __init__(self, request_id: int):
        super().__init__(request_id, reason="has already been executed")


class ZeroAmountTransfer(VaultError):
    """Raised when a transfer of zero is requested."""

    def __init__(self):
        super().__init__("Transfer amount must be greater than zero")


class AlreadyApproved(VaultError):
    """Raised when an administrator approves the same request twice."""

    def __init__(self, request_id: int, approver: str):
        self.request_id = request_id
        self.approver = approver
        super().__init__(
            f"Administrator {approver!r} already approved request {request_id}"
        )


class InvalidAmount(VaultError):
    """Raised when an amount is negative or not an integer."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Amount must be a non-negative integer, got {amount!r}")


class BalanceOverflow(VaultError):
    """Raised when a deposit would exceed the balance representation."""

    def __init__(self, balance: int, amount: int, limit: int):
        self.balance = balance
        self.amount = amount
        self.limit = limit
        super().__init__(
            f"Deposit of {amount} would overflow balance {balance} (limit {limit})"
        )


class QuorumNotReached(VaultError):
    """Raised when execution is attempted below the approval threshold."""

    def __init__(self, request_id: int, approvals: int, required: int):
        self.request_id = request_id
        self.approvals = approvals
        self.required = required
        super().__init__(
            f"Transfer request {request_id} has {approvals}/{required} approvals"
        )


class TransferFailed(VaultError):
    """Raised when the ledger fails to send funds. State is rolled back."""

    def __init__(self, recipient: str, amount: int, cause: Exception):
        self.recipient = recipient
        self.amount = amount
        self.cause = cause
        super().__init__(f"Ledger failed to send {amount} to {recipient!r}: {cause}")
