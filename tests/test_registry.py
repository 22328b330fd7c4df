"""
Administrator registry tests.

Tests owner-only registration and membership queries.
"""

import pytest

from core.errors import NotAuthorized
from core.registry import AdministratorRegistry


@pytest.mark.unit
class TestAdministratorRegistry:
    """Test administrator membership."""

    def test_owner_is_administrator(self):
        """Owner is an administrator from initialization."""
        registry = AdministratorRegistry("alice")

        assert registry.is_administrator("alice")
        assert registry.is_owner("alice")
        assert len(registry) == 1

    def test_requires_owner_identity(self):
        """Owner identity must be a non-empty string."""
        with pytest.raises(ValueError, match="non-empty string"):
            AdministratorRegistry("")

        with pytest.raises(ValueError):
            AdministratorRegistry(None)

    def test_initial_administrators(self):
        """Initial administrators are members alongside the owner."""
        registry = AdministratorRegistry("alice", ["bob", "carol"])

        assert registry.administrators() == frozenset({"alice", "bob", "carol"})

    def test_unknown_identity_rejected(self):
        """Unknown identity is not an administrator."""
        registry = AdministratorRegistry("alice")

        assert not registry.is_administrator("bob")
        assert "bob" not in registry

    def test_owner_registers_administrator(self):
        """Owner can register a new administrator."""
        registry = AdministratorRegistry("alice")

        assert registry.register_administrator("alice", "bob") is True
        assert registry.is_administrator("bob")
        assert "bob" in registry

    def test_registration_is_idempotent(self):
        """Re-registering an administrator is a no-op, not an error."""
        registry = AdministratorRegistry("alice")
        registry.register_administrator("alice", "bob")

        assert registry.register_administrator("alice", "bob") is False
        assert registry.register_administrator("alice", "alice") is False
        assert len(registry) == 2

    def test_non_owner_cannot_register(self):
        """Administrators other than the owner cannot register members."""
        registry = AdministratorRegistry("alice", ["bob"])

        with pytest.raises(NotAuthorized) as exc_info:
            registry.register_administrator("bob", "carol")

        assert exc_info.value.caller == "bob"
        assert not registry.is_administrator("carol")

    def test_outsider_cannot_register_self(self):
        """An outsider cannot register itself."""
        registry = AdministratorRegistry("alice")

        with pytest.raises(NotAuthorized):
            registry.register_administrator("mallory", "mallory")

        assert not registry.is_administrator("mallory")

    def test_rejects_blank_identity(self):
        """Blank identities cannot be registered."""
        registry = AdministratorRegistry("alice")

        with pytest.raises(ValueError):
            registry.register_administrator("alice", "   ")

    def test_administrators_snapshot_is_immutable(self):
        """Snapshot does not expose internal state."""
        registry = AdministratorRegistry("alice")
        snapshot = registry.administrators()

        registry.register_administrator("alice", "bob")

        assert "bob" not in snapshot
        assert isinstance(snapshot, frozenset)
