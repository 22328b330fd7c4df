"""
Pytest configuration for the Quorum Vault test suite.

Fixtures and configuration shared across all tests.
"""

from unittest.mock import Mock

import fakeredis
import pytest

from bus.python.quorum_bus import EventBus
from core.approval import ApprovalEngine
from core.registry import AdministratorRegistry
from core.treasury import InMemoryLedger, Treasury


OWNER = "owner"
ADMIN_B = "admin_b"
ADMIN_C = "admin_c"
OUTSIDER = "mallory"
RECIPIENT = "recipient_r"


@pytest.fixture
def valid_vault_event_v1():
    """Returns a valid event matching vault_event.schema.json v1.0."""
    return {
        "version": "1.0",
        "event_id": "550e8400-e29b-41d4-a716-446655440000",
        "timestamp": "2026-01-14T12:00:00+00:00",
        "source": "quorum-vault",
        "event_kind": "transfer_requested",
        "actor": ADMIN_B,
        "amount": 50,
        "request_id": 0,
        "recipient": RECIPIENT,
        "approvals": 0,
        "required_approvals": 2,
    }


@pytest.fixture
def redis_client():
    """Provide fake Redis client for testing."""
    return fakeredis.FakeRedis(decode_responses=False)


@pytest.fixture
def event_bus(redis_client):
    """Provide event bus instance with fake Redis."""
    return EventBus(redis_client=redis_client, stream_prefix="test-quorum")


@pytest.fixture
def mock_bus():
    """Mock audit sink."""
    return Mock()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def registry():
    """Owner plus administrators B and C."""
    registry = AdministratorRegistry(OWNER)
    registry.register_administrator(OWNER, ADMIN_B)
    registry.register_administrator(OWNER, ADMIN_C)
    return registry


@pytest.fixture
def engine(registry, ledger, mock_bus):
    """2-of-3 engine with an empty treasury."""
    return ApprovalEngine(
        registry=registry,
        treasury=Treasury(ledger),
        event_bus=mock_bus,
        required_approvals=2,
    )


def published_kinds(mock_bus):
    """Event kinds published to a mock bus, in order."""
    return [c.args[0]["event_kind"] for c in mock_bus.publish.call_args_list]
