"""
Quorum Vault audit bus - Python client.

Redis Streams transport for contract-validated vault events.
"""

from .bus import DEFAULT_CONTRACTS_DIR, EventBus
from .validator import ContractValidator

__all__ = ["EventBus", "ContractValidator", "DEFAULT_CONTRACTS_DIR"]
