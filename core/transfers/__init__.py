"""Transfer requests and their approvals."""

from .request_ledger import RequestLedger, RequestStatus, TransferRequest

__all__ = ["RequestLedger", "RequestStatus", "TransferRequest"]
