"""
Request Ledger - transfer requests and their approvals.

Manages request lifecycle:
1. Allocates sequential ids (never reused)
2. Tracks the distinct administrators approving each request
3. Marks requests executed (terminal)
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, List, Optional

from core.errors import AlreadyApproved, InvalidRequestId, RequestAlreadyExecuted


logger = logging.getLogger(__name__)


class RequestStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"


@dataclass(frozen=True)
class TransferRequest:
    """Snapshot of a transfer request."""

    id: int
    amount: int
    recipient: str
    status: RequestStatus = RequestStatus.PENDING
    approvers: FrozenSet[str] = frozenset()
    requested_by: Optional[str] = None
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def approvals(self) -> int:
        return len(self.approvers)

    @property
    def is_executed(self) -> bool:
        return self.status is RequestStatus.EXECUTED


class RequestLedger:
    """
    Owns the collection of transfer requests.

    Invariants:
    - Ids are assigned in creation order starting at 0
    - approvals == number of distinct approvers
    - Executed requests are immutable

    Not thread-safe on its own; callers serialize access.
    """

    def __init__(self):
        self._requests: List[TransferRequest] = []

    def create_request(
        self,
        amount: int,
        recipient: str,
        requested_by: Optional[str] = None,
    ) -> int:
        """
        Store a new pending request.

        No authorization check here; that is the caller's job.

        Args:
            amount: Amount to transfer
            recipient: Recipient of the funds
            requested_by: Identity that created the request

        Returns:
            New request id
        """
        request_id = len(self._requests)
        self._requests.append(
            TransferRequest(
                id=request_id,
                amount=amount,
                recipient=recipient,
                requested_by=requested_by,
            )
        )
        logger.debug(f"Created request {request_id}: {amount} to {recipient}")
        return request_id

    def get_request(self, request_id: int) -> TransferRequest:
        """
        Look up a request.

        Raises:
            InvalidRequestId: If the id was never allocated
        """
        if (
            isinstance(request_id, bool)
            or not isinstance(request_id, int)
            or not 0 <= request_id < len(self._requests)
        ):
            raise InvalidRequestId(request_id)
        return self._requests[request_id]

    def has_approved(self, request_id: int, approver: str) -> bool:
        return approver in self.get_request(request_id).approvers

    def record_approval(self, request_id: int, approver: str) -> int:
        """
        Add approver to the request's approver set.

        Args:
            request_id: Request being approved
            approver: Approving administrator

        Returns:
            Approval count after recording

        Raises:
            InvalidRequestId: If the id is unknown
            RequestAlreadyExecuted: If the request is executed
            AlreadyApproved: If approver already approved this request
        """
        request = self.get_request(request_id)

        if request.is_executed:
            raise RequestAlreadyExecuted(request_id)
        if approver in request.approvers:
            raise AlreadyApproved(request_id, approver)

        updated = replace(request, approvers=request.approvers | {approver})
        self._requests[request_id] = updated
        return updated.approvals

    def mark_executed(self, request_id: int) -> None:
        """
        Transition Pending -> Executed.

        Raises:
            InvalidRequestId: If the id is unknown
            RequestAlreadyExecuted: If the request is already executed
        """
        request = self.get_request(request_id)

        if request.is_executed:
            raise RequestAlreadyExecuted(request_id)

        self._requests[request_id] = replace(request, status=RequestStatus.EXECUTED)
        logger.debug(f"Request {request_id} marked executed")

    def pending_ids(self) -> List[int]:
        return [r.id for r in self._requests if not r.is_executed]

    def __len__(self) -> int:
        return len(self._requests)
