"""
Approval Engine - quorum-gated release of treasury funds.

Manages the transfer lifecycle:
1. Administrators request transfers
2. Administrators approve (each at most once per request)
3. Quorum + sufficient funds => withdraw, mark executed
4. Every committed change is emitted as a vault_event contract
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional

from bus.python.quorum_bus import EventBus
from core.config import VaultConfig
from core.errors import (
    AlreadyApproved,
    InsufficientFunds,
    NotAuthorized,
    QuorumNotReached,
    RequestAlreadyExecuted,
    ZeroAmountTransfer,
)
from core.registry import AdministratorRegistry
from core.transfers import RequestLedger, RequestStatus, TransferRequest
from core.treasury import Ledger, Treasury
from core.treasury.treasury import validate_amount


logger = logging.getLogger(__name__)


class RequestView(NamedTuple):
    amount: int
    recipient: str
    approvals: int
    status: RequestStatus


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of an approval or execution attempt."""

    request_id: int
    approvals: int
    required_approvals: int
    executed: bool
    balance: int
    reason: Optional[str] = None

    @property
    def quorum_reached(self) -> bool:
        return self.approvals >= self.required_approvals


class ApprovalEngine:
    """
    Orchestrates transfer requests, approvals and execution.

    Invariants:
    - Only administrators create, approve, execute or view requests
    - An administrator's approval counts once per request
    - Quorum means approvals >= required_approvals
    - Funds are re-checked every time quorum is evaluated
    - A failed call changes nothing and emits nothing
    """

    def __init__(
        self,
        registry: AdministratorRegistry,
        treasury: Treasury,
        event_bus,
        required_approvals: int,
        requests: Optional[RequestLedger] = None,
        source_name: str = "quorum-vault",
    ):
        """
        Initialize approval engine.

        Args:
            registry: Administrator registry
            treasury: Treasury guarding the balance
            event_bus: Audit sink exposing publish(message, contract_type)
            required_approvals: Quorum threshold (>= 1)
            requests: Request ledger (default: new empty ledger)
            source_name: Source identifier on emitted events
        """
        if (
            isinstance(required_approvals, bool)
            or not isinstance(required_approvals, int)
            or required_approvals < 1
        ):
            raise ValueError(
                f"required_approvals must be an integer >= 1, got {required_approvals!r}"
            )

        # Every event carries source; an empty one would fail the contract
        if not isinstance(source_name, str) or not source_name.strip():
            raise ValueError(f"source_name must be a non-empty string, got {source_name!r}")

        self.registry = registry
        self.treasury = treasury
        self.bus = event_bus
        self.required_approvals = required_approvals
        self.requests = requests if requests is not None else RequestLedger()
        self.source_name = source_name

        # Single serialization point for every engine operation
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: VaultConfig,
        ledger: Ledger,
        event_bus=None,
    ) -> "ApprovalEngine":
        """
        Build registry, treasury and engine from a VaultConfig.

        Without an explicit event_bus, one is connected from the config's
        bus settings.
        """
        if event_bus is None:
            event_bus = EventBus.from_config(config)

        registry = AdministratorRegistry(config.owner, config.administrators)
        treasury = Treasury(ledger)
        return cls(
            registry=registry,
            treasury=treasury,
            event_bus=event_bus,
            required_approvals=config.required_approvals,
            source_name=config.source_name,
        )

    def _require_administrator(self, caller: str, operation: str) -> None:
        if not self.registry.is_administrator(caller):
            logger.warning(f"{operation} rejected: {caller} is not an administrator")
            raise NotAuthorized(caller, "an administrator")

    def deposit(self, amount: int, depositor: Optional[str] = None) -> int:
        """
        Add funds to the vault. Anyone may deposit.

        Args:
            amount: Amount to deposit
            depositor: Optional depositor identity (audit only)

        Returns:
            New balance
        """
        with self._lock:
            balance = self.treasury.deposit(amount)
            self._emit("deposit", actor=depositor, amount=amount, balance=balance)
            return balance

    def register_administrator(self, caller: str, identity: str) -> bool:
        """
        Register an administrator. Owner only.

        Returns:
            True if newly registered, False if already an administrator
        """
        with self._lock:
            added = self.registry.register_administrator(caller, identity)
            if added:
                self._emit(
                    "administrator_registered",
                    actor=caller,
                    amount=0,
                    identity=identity,
                )
            return added

    def request_transfer(self, caller: str, amount: int, recipient: str) -> int:
        """
        Create a pending transfer request.

        Args:
            caller: Requesting administrator
            amount: Amount to transfer (> 0)
            recipient: Recipient of the funds

        Returns:
            New request id

        Raises:
            NotAuthorized: If caller is not an administrator
            ZeroAmountTransfer: If amount is 0
            InvalidAmount: If amount is negative or not an integer
            InsufficientFunds: If the balance cannot cover amount right now
            ValueError: If recipient is empty
        """
        with self._lock:
            self._require_administrator(caller, "Transfer request")

            validate_amount(amount)
            if amount == 0:
                raise ZeroAmountTransfer()

            if not isinstance(recipient, str) or not recipient.strip():
                raise ValueError(f"Recipient must be a non-empty string, got {recipient!r}")

            # Advisory; the authoritative check happens at execution
            if not self.treasury.can_afford(amount):
                balance = self.treasury.balance
                logger.warning(
                    f"Transfer request by {caller} rejected: "
                    f"balance {balance} < amount {amount}"
                )
                raise InsufficientFunds(balance, amount)

            request_id = self.requests.create_request(amount, recipient, requested_by=caller)

            logger.info(
                f"Transfer request {request_id} created by {caller}: "
                f"{amount} to {recipient}"
            )
            self._emit(
                "transfer_requested",
                actor=caller,
                amount=amount,
                request_id=request_id,
                recipient=recipient,
                approvals=0,
            )
            return request_id

    def approve_transfer(self, caller: str, request_id: int) -> ApprovalOutcome:
        """
        Approve a pending request, executing it once quorum is reached.

        If quorum is reached but funds are short, the approval still stands
        and the request stays pending (outcome.executed is False).

        Args:
            caller: Approving administrator
            request_id: Request being approved

        Returns:
            ApprovalOutcome describing the resulting state

        Raises:
            NotAuthorized: If caller is not an administrator
            InvalidRequestId: If the request is unknown or already executed
            AlreadyApproved: If caller already approved this request
            TransferFailed: If the ledger send fails (approval not recorded)
        """
        with self._lock:
            self._require_administrator(caller, "Approval")

            request = self.requests.get_request(request_id)
            if request.is_executed:
                logger.warning(
                    f"Approval by {caller} rejected: request {request_id} already executed"
                )
                raise RequestAlreadyExecuted(request_id)

            if self.requests.has_approved(request_id, caller):
                logger.warning(
                    f"Approval by {caller} rejected: already approved request {request_id}"
                )
                raise AlreadyApproved(request_id, caller)

            approvals = request.approvals + 1
            execute = (
                approvals >= self.required_approvals
                and self.treasury.can_afford(request.amount)
            )

            # Withdraw first: if the ledger fails nothing has been recorded yet
            if execute:
                balance = self.treasury.withdraw(request.recipient, request.amount)

            self.requests.record_approval(request_id, caller)
            logger.info(
                f"Request {request_id} approved by {caller} "
                f"({approvals}/{self.required_approvals})"
            )
            self._emit(
                "transfer_approved",
                actor=caller,
                amount=request.amount,
                request_id=request_id,
                recipient=request.recipient,
                approvals=approvals,
            )

            if execute:
                self._complete_execution(caller, request, approvals, balance)
                return self._outcome(request_id, executed=True, balance=balance)

            reason = None
            balance = self.treasury.balance
            if approvals >= self.required_approvals:
                reason = (
                    f"insufficient funds: balance {balance} < amount {request.amount}"
                )
                logger.warning(
                    f"Request {request_id} reached quorum but execution deferred: {reason}"
                )
            return self._outcome(request_id, executed=False, balance=balance, reason=reason)

    def execute_transfer(self, caller: str, request_id: int) -> ApprovalOutcome:
        """
        Execute a pending request whose quorum was already reached.

        Used when funds were short at the moment quorum was met.

        Raises:
            NotAuthorized: If caller is not an administrator
            InvalidRequestId: If the request is unknown or already executed
            QuorumNotReached: If approvals are below the threshold
            InsufficientFunds: If the balance cannot cover the amount
            TransferFailed: If the ledger send fails
        """
        with self._lock:
            self._require_administrator(caller, "Execution")

            request = self.requests.get_request(request_id)
            if request.is_executed:
                raise RequestAlreadyExecuted(request_id)

            if request.approvals < self.required_approvals:
                raise QuorumNotReached(
                    request_id, request.approvals, self.required_approvals
                )

            if not self.treasury.can_afford(request.amount):
                balance = self.treasury.balance
                logger.warning(
                    f"Execution of request {request_id} by {caller} rejected: "
                    f"balance {balance} < amount {request.amount}"
                )
                raise InsufficientFunds(balance, request.amount, request_id)

            balance = self.treasury.withdraw(request.recipient, request.amount)
            self._complete_execution(caller, request, request.approvals, balance)
            return self._outcome(request_id, executed=True, balance=balance)

    def view_request(self, caller: str, request_id: int) -> RequestView:
        """
        Read a request. Administrators only.

        Raises:
            NotAuthorized: If caller is not an administrator
            InvalidRequestId: If the request is unknown
        """
        with self._lock:
            self._require_administrator(caller, "View")
            request = self.requests.get_request(request_id)
            return RequestView(
                amount=request.amount,
                recipient=request.recipient,
                approvals=request.approvals,
                status=request.status,
            )

    def pending_requests(self, caller: str) -> List[TransferRequest]:
        """List requests still awaiting execution. Administrators only."""
        with self._lock:
            self._require_administrator(caller, "Listing")
            return [self.requests.get_request(i) for i in self.requests.pending_ids()]

    def get_balance(self) -> int:
        with self._lock:
            return self.treasury.balance

    def get_state(self) -> Dict[str, Any]:
        """
        Get an observable snapshot of the vault.

        Returns:
            State dictionary with balance, threshold and request counts
        """
        with self._lock:
            pending = len(self.requests.pending_ids())
            return {
                "balance": self.treasury.balance,
                "required_approvals": self.required_approvals,
                "administrator_count": len(self.registry),
                "request_count": len(self.requests),
                "pending_count": pending,
                "executed_count": len(self.requests) - pending,
            }

    def _complete_execution(
        self,
        caller: str,
        request: TransferRequest,
        approvals: int,
        balance: int,
    ) -> None:
        self.requests.mark_executed(request.id)
        logger.info(
            f"Request {request.id} executed: {request.amount} sent to "
            f"{request.recipient}, balance={balance}"
        )
        self._emit(
            "transfer_executed",
            actor=caller,
            amount=request.amount,
            request_id=request.id,
            recipient=request.recipient,
            approvals=approvals,
            balance=balance,
        )

    def _outcome(
        self,
        request_id: int,
        executed: bool,
        balance: int,
        reason: Optional[str] = None,
    ) -> ApprovalOutcome:
        return ApprovalOutcome(
            request_id=request_id,
            approvals=self.requests.get_request(request_id).approvals,
            required_approvals=self.required_approvals,
            executed=executed,
            balance=balance,
            reason=reason,
        )

    def _create_event(
        self,
        event_kind: str,
        actor: Optional[str],
        amount: int,
        **details: Any,
    ) -> Dict[str, Any]:
        """
        Create vault_event contract.

        Args:
            event_kind: Kind of state change
            actor: Identity that caused it (None for anonymous deposits)
            amount: Amount involved (0 when not applicable)
            **details: Optional contract fields (request_id, recipient, ...)

        Returns:
            Event matching vault_event.schema.json
        """
        event = {
            "version": "1.0",
            "event_id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": self.source_name,
            "event_kind": event_kind,
            "actor": actor,
            "amount": amount,
            "required_approvals": self.required_approvals,
        }
        event.update({k: v for k, v in details.items() if v is not None})
        return event

    def _emit(self, event_kind: str, actor: Optional[str], amount: int, **details: Any) -> None:
        event = self._create_event(event_kind, actor, amount, **details)

        # State is already committed; a sink failure must not undo it
        try:
            self.bus.publish(event, "vault_event")
        except Exception as e:
            logger.error(f"Failed to publish {event_kind} event: {e}", exc_info=True)
