"""
Vault Memory - immutable audit trail.

Append-only persistence for vault events consumed from the bus.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Any, List, Optional


logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Append-only storage for the vault audit trail.

    Invariants:
    - Append-only (no updates or deletes)
    - JSONL format (one JSON object per line)
    - Never mutates historical data
    - Designed for auditability, not performance
    """

    def __init__(self, storage_dir: Path, source_name: str = "quorum-audit"):
        """
        Initialize memory store.

        Args:
            storage_dir: Directory to store JSONL files
            source_name: Consumer name used when subscribing to the bus
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.source_name = source_name

        self.event_log = self.storage_dir / "vault_events.jsonl"
        self._lock = threading.Lock()

        logger.info(f"Memory store initialized at {self.storage_dir}")

    def store_event(self, event: Dict[str, Any]) -> None:
        """
        Append a vault event to the audit trail.

        Args:
            event: Event matching vault_event.schema.json
        """
        with self._lock:
            with open(self.event_log, "a") as f:
                f.write(json.dumps(event) + "\n")
        logger.debug(
            f"Stored {event.get('event_kind')} event {event.get('event_id')} to audit trail"
        )

    def read_events(
        self,
        limit: Optional[int] = None,
        since: Optional[str] = None,
        event_kind: Optional[str] = None,
        request_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read events from the audit trail.

        Args:
            limit: Maximum entries to return
            since: ISO timestamp to filter from
            event_kind: Only events of this kind
            request_id: Only events about this transfer request

        Returns:
            List of events in append order
        """
        if not self.event_log.exists():
            return []

        entries = []
        with open(self.event_log) as f:
            for line in f:
                if limit is not None and len(entries) >= limit:
                    break
                if not line.strip():
                    continue

                entry = json.loads(line)

                if since and entry.get("timestamp", "") < since:
                    continue
                if event_kind and entry.get("event_kind") != event_kind:
                    continue
                if request_id is not None and entry.get("request_id") != request_id:
                    continue

                entries.append(entry)

        return entries

    def request_history(self, request_id: int) -> List[Dict[str, Any]]:
        """All events for one transfer request, oldest first."""
        return self.read_events(request_id=request_id)

    def count_events(self) -> int:
        """Count total events in audit trail."""
        if not self.event_log.exists():
            return 0

        with open(self.event_log) as f:
            return sum(1 for line in f if line.strip())

    def run(self, event_bus, stop_event: Optional[threading.Event] = None) -> None:
        """
        Record vault events from the bus until stopped.

        Args:
            event_bus: EventBus carrying vault_event contracts
            stop_event: Optional event that ends the loop when set
        """
        logger.info("Starting audit recorder")

        event_bus.subscribe(
            contract_type="vault_event",
            handler=self.store_event,
            consumer_group="audit-recorder",
            consumer_name=self.source_name,
            stop_event=stop_event,
        )
