"""
Redis Streams-based audit bus.

Carries vault state-change events to downstream consumers.
"""

import json
import logging
import threading
from typing import Dict, Any, List, Optional, Callable
from pathlib import Path

import redis

from .validator import ContractValidator


logger = logging.getLogger(__name__)


DEFAULT_CONTRACTS_DIR = Path(__file__).resolve().parents[2] / "contracts"


class EventBus:
    """
    Redis Streams-based event bus with contract validation.

    Invariants:
    - Messages are validated before they are appended (fail fast)
    - Streams are append-only and bounded (maxlen)
    - Handler failures are logged and acknowledged, never retried
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        contracts_dir: Optional[Path] = None,
        stream_prefix: str = "quorum",
        max_stream_length: int = 10000,
    ):
        """
        Initialize event bus.

        Args:
            redis_client: Redis client instance
            contracts_dir: Directory with contract schemas (default: bus/contracts)
            stream_prefix: Prefix for Redis stream names
            max_stream_length: Maximum entries kept per stream
        """
        self.redis = redis_client
        self.validator = ContractValidator(contracts_dir or DEFAULT_CONTRACTS_DIR)
        self.stream_prefix = stream_prefix
        self.max_stream_length = max_stream_length

        # Publishing happens under the vault lock; an unbounded socket can stall it
        pool = getattr(redis_client, "connection_pool", None)
        connection_kwargs = getattr(pool, "connection_kwargs", None) or {}
        if connection_kwargs.get("socket_timeout") is None:
            logger.warning(
                "Redis client has no socket_timeout; an unresponsive Redis "
                "will block publishers indefinitely"
            )

    @classmethod
    def from_config(cls, config, redis_client: Optional[redis.Redis] = None) -> "EventBus":
        """
        Build an event bus from vault settings.

        Args:
            config: Settings exposing redis_url, stream_prefix,
                max_stream_length and socket_timeout (e.g. VaultConfig)
            redis_client: Optional pre-built client (default: connect to
                config.redis_url with config.socket_timeout)

        Returns:
            Configured EventBus
        """
        if redis_client is None:
            redis_client = redis.Redis.from_url(
                config.redis_url,
                socket_timeout=config.socket_timeout,
                socket_connect_timeout=config.socket_timeout,
            )

        return cls(
            redis_client=redis_client,
            stream_prefix=config.stream_prefix,
            max_stream_length=config.max_stream_length,
        )

    def stream_name(self, contract_type: str) -> str:
        """Stream name for a contract type, e.g. "quorum:vault_events"."""
        return f"{self.stream_prefix}:{contract_type}s"

    def publish(self, message: Dict[str, Any], contract_type: str) -> str:
        """
        Validate and append a message.

        Args:
            message: Message to publish
            contract_type: Contract type, e.g. "vault_event"

        Returns:
            Redis stream entry id

        Raises:
            ValidationError: If message violates the contract
            ValueError: If contract type is unknown
            redis.RedisError: If Redis operation fails
        """
        self.validator.validate(message, contract_type)

        stream_name = self.stream_name(contract_type)
        entry_id = self.redis.xadd(
            stream_name,
            {"data": json.dumps(message)},
            maxlen=self.max_stream_length,
            approximate=True,
        )
        entry_id = entry_id.decode("utf-8") if isinstance(entry_id, bytes) else entry_id

        logger.debug(
            f"Published {contract_type} to {stream_name}: {entry_id}",
            extra={"contract_type": contract_type, "entry_id": entry_id},
        )
        return entry_id

    def _ensure_group(self, stream_name: str, consumer_group: str) -> None:
        try:
            self.redis.xgroup_create(stream_name, consumer_group, id="0", mkstream=True)
            logger.info(f"Created consumer group {consumer_group} for {stream_name}")
        except redis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    def poll(
        self,
        contract_type: str,
        handler: Callable[[Dict[str, Any]], None],
        consumer_group: str,
        consumer_name: str,
        block_ms: int = 0,
        count: int = 10,
    ) -> int:
        """
        Read one batch for a consumer group and hand each message to handler.

        Args:
            contract_type: Contract type to consume
            handler: Callback for each message
            consumer_group: Redis consumer group name
            consumer_name: Consumer name within group
            block_ms: Block timeout in milliseconds (0 = do not block)
            count: Maximum messages per batch

        Returns:
            Number of messages acknowledged
        """
        stream_name = self.stream_name(contract_type)
        self._ensure_group(stream_name, consumer_group)

        batches = self.redis.xreadgroup(
            consumer_group,
            consumer_name,
            {stream_name: ">"},
            count=count,
            block=block_ms or None,
        )

        handled = 0
        for _, entries in batches or []:
            for entry_id, fields in entries:
                try:
                    handler(json.loads(fields[b"data"]))
                except Exception as e:
                    logger.error(
                        f"Error processing {contract_type} {entry_id}: {e}",
                        exc_info=True,
                        extra={"entry_id": entry_id, "stream": stream_name},
                    )
                # Acknowledge either way so a bad entry never blocks the group
                self.redis.xack(stream_name, consumer_group, entry_id)
                handled += 1

        return handled

    def subscribe(
        self,
        contract_type: str,
        handler: Callable[[Dict[str, Any]], None],
        consumer_group: str,
        consumer_name: str,
        block_ms: int = 1000,
        count: int = 10,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Consume messages until stopped.

        Blocking. Stops on KeyboardInterrupt or when stop_event is set.
        """
        stream_name = self.stream_name(contract_type)
        logger.info(
            f"Starting subscription: {stream_name} "
            f"(group={consumer_group}, consumer={consumer_name})"
        )

        while stop_event is None or not stop_event.is_set():
            try:
                self.poll(
                    contract_type,
                    handler,
                    consumer_group,
                    consumer_name,
                    block_ms=block_ms,
                    count=count,
                )
            except KeyboardInterrupt:
                break
            except redis.RedisError as e:
                logger.error(f"Error in subscription loop: {e}", exc_info=True)

        logger.info(f"Stopped subscription to {stream_name}")

    def read_stream(
        self,
        contract_type: str,
        start_id: str = "-",
        count: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Read messages without a consumer group (inspection and tests).

        Args:
            contract_type: Contract type to read
            start_id: First entry id to include
            count: Maximum messages to return

        Returns:
            Decoded messages in stream order
        """
        entries = self.redis.xrange(
            self.stream_name(contract_type), min=start_id, max="+", count=count
        )
        return [json.loads(fields[b"data"]) for _, fields in entries]
