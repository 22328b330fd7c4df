"""Quorum Vault approval system - administrator quorum over treasury transfers."""

from .approval_engine import ApprovalEngine, ApprovalOutcome, RequestView

__all__ = ["ApprovalEngine", "ApprovalOutcome", "RequestView"]
