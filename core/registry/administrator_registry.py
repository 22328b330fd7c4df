"""
Administrator Registry.

Enforces the administrator membership model:
- The owner identity is fixed at initialization
- The owner is an administrator from the start
- Only the owner may register new administrators
- Administrators are never removed
"""

import logging
import threading
from typing import FrozenSet, Iterable, Optional

from core.errors import NotAuthorized


logger = logging.getLogger(__name__)


def _require_identity(identity: str) -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise ValueError(f"Identity must be a non-empty string, got {identity!r}")
    return identity


class AdministratorRegistry:
    """
    Set of identities permitted to create and approve transfer requests.

    Invariants:
    - Owner is always a member
    - Registration is idempotent
    - Unknown identity = not an administrator
    """

    def __init__(self, owner: str, administrators: Optional[Iterable[str]] = None):
        """
        Initialize administrator registry.

        Args:
            owner: Owner identity (required)
            administrators: Optional initial administrators besides the owner
        """
        self.owner = _require_identity(owner)
        self._administrators = {self.owner}
        self._lock = threading.Lock()

        for identity in administrators or ():
            self._administrators.add(_require_identity(identity))

        logger.info(
            f"Administrator registry initialized: owner={self.owner}, "
            f"administrators={len(self._administrators)}"
        )

    def is_owner(self, identity: str) -> bool:
        """Check whether identity is the owner."""
        return identity == self.owner

    def is_administrator(self, identity: str) -> bool:
        """
        Check administrator membership.

        Args:
            identity: Identity to check

        Returns:
            True if identity is an administrator, False otherwise
        """
        with self._lock:
            return identity in self._administrators

    def register_administrator(self, caller: str, identity: str) -> bool:
        """
        Add an administrator.

        Args:
            caller: Identity making the call (must be the owner)
            identity: Identity to register

        Returns:
            True if newly registered, False if already an administrator

        Raises:
            NotAuthorized: If caller is not the owner
            ValueError: If identity is empty
        """
        if not self.is_owner(caller):
            logger.warning(
                f"Registration rejected: caller {caller} is not the owner"
            )
            raise NotAuthorized(caller, "the owner")

        _require_identity(identity)

        with self._lock:
            if identity in self._administrators:
                logger.debug(f"Administrator {identity} already registered")
                return False
            self._administrators.add(identity)

        logger.info(f"Administrator {identity} registered by {caller}")
        return True

    def administrators(self) -> FrozenSet[str]:
        """Return a snapshot of all administrator identities."""
        with self._lock:
            return frozenset(self._administrators)

    def __contains__(self, identity: str) -> bool:
        return self.is_administrator(identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._administrators)
