"""
Audit trail integration tests.

Engine -> Redis Streams bus -> JSONL memory store, with fakeredis.
"""

import threading

import pytest

from conftest import ADMIN_B, ADMIN_C, OUTSIDER, OWNER, RECIPIENT
from core.approval import ApprovalEngine
from core.config import VaultConfig
from core.errors import NotAuthorized
from core.memory import MemoryStore
from core.treasury import InMemoryLedger


@pytest.fixture
def vault(event_bus):
    config = VaultConfig(owner=OWNER, required_approvals=2, administrators=[ADMIN_B])
    return ApprovalEngine.from_config(config, InMemoryLedger(), event_bus)


@pytest.mark.integration
class TestAuditTrail:
    """Test the full audit path."""

    def test_engine_events_reach_stream(self, vault, event_bus):
        vault.register_administrator(OWNER, ADMIN_C)
        vault.deposit(100)
        request_id = vault.request_transfer(ADMIN_B, 50, RECIPIENT)
        vault.approve_transfer(ADMIN_B, request_id)
        vault.approve_transfer(ADMIN_C, request_id)

        kinds = [m["event_kind"] for m in event_bus.read_stream("vault_event")]

        assert kinds == [
            "administrator_registered",
            "deposit",
            "transfer_requested",
            "transfer_approved",
            "transfer_approved",
            "transfer_executed",
        ]

    def test_failed_call_leaves_no_trace(self, vault, event_bus):
        vault.deposit(100)
        request_id = vault.request_transfer(ADMIN_B, 50, RECIPIENT)

        with pytest.raises(NotAuthorized):
            vault.approve_transfer(OUTSIDER, request_id)

        assert len(event_bus.read_stream("vault_event")) == 2

    def test_memory_store_records_stream(self, vault, event_bus, tmp_path):
        memory = MemoryStore(tmp_path / "audit")
        vault.deposit(100)
        request_id = vault.request_transfer(ADMIN_B, 50, RECIPIENT)

        event_bus.poll("vault_event", memory.store_event, "audit-recorder", "recorder-1")

        history = memory.request_history(request_id)
        assert [e["event_kind"] for e in history] == ["transfer_requested"]
        assert memory.count_events() == 2

    def test_memory_store_run_until_stopped(self, vault, event_bus, tmp_path):
        memory = MemoryStore(tmp_path / "audit")
        vault.deposit(10)
        stop = threading.Event()

        thread = threading.Thread(target=memory.run, args=(event_bus, stop), daemon=True)
        thread.start()
        for _ in range(100):
            if memory.count_events():
                break
            stop.wait(0.02)
        stop.set()
        thread.join(timeout=5)

        assert memory.read_events()[0]["event_kind"] == "deposit"
