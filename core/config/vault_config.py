"""
Vault configuration.

Loads the vault setup from an explicit YAML file:
- Owner identity (required)
- Approval threshold (required, >= 1)
- Initial administrators (optional)
- Event bus settings (optional)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml


logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float))


def _require_mapping(value, section: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"'{section}' section must be a mapping, got {value!r}")
    return value


@dataclass
class VaultConfig:
    """Validated vault settings."""

    owner: str
    required_approvals: int
    administrators: List[str] = field(default_factory=list)
    source_name: str = "quorum-vault"
    redis_url: str = "redis://localhost:6379/0"
    stream_prefix: str = "quorum"
    max_stream_length: int = 10000
    # Bounds every bus call made while the engine lock is held
    socket_timeout: float = 5.0

    def __post_init__(self):
        if not isinstance(self.owner, str) or not self.owner.strip():
            raise ValueError("Vault owner identity must be configured")

        if (
            isinstance(self.required_approvals, bool)
            or not isinstance(self.required_approvals, int)
            or self.required_approvals < 1
        ):
            raise ValueError(
                f"required_approvals must be an integer >= 1, "
                f"got {self.required_approvals!r}"
            )

        for name in ("source_name", "redis_url", "stream_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")

        if (
            isinstance(self.max_stream_length, bool)
            or not isinstance(self.max_stream_length, int)
            or self.max_stream_length < 1
        ):
            raise ValueError(
                f"max_stream_length must be an integer >= 1, "
                f"got {self.max_stream_length!r}"
            )

        if not _is_number(self.socket_timeout) or self.socket_timeout <= 0:
            raise ValueError(
                f"socket_timeout must be a positive number of seconds, "
                f"got {self.socket_timeout!r}"
            )

        member_count = len({self.owner, *self.administrators})
        if self.required_approvals > member_count:
            logger.warning(
                f"Threshold {self.required_approvals} exceeds current "
                f"administrator count {member_count}; no transfer can execute "
                f"until more administrators are registered"
            )


def load_vault_config(config_file: Optional[Path] = None) -> VaultConfig:
    """
    Load vault configuration from YAML.

    Args:
        config_file: Path to vault config file (required)

    Returns:
        Validated VaultConfig

    Raises:
        ValueError: If the file is missing or invalid
    """
    if config_file is None:
        raise ValueError("Vault requires explicit configuration file")

    config_file = Path(config_file)
    if not config_file.exists():
        raise ValueError(f"Vault config file not found: {config_file}")

    try:
        try:
            with open(config_file, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Vault config is not valid YAML: {e}") from e

        if not isinstance(config, dict) or 'vault' not in config:
            raise ValueError("Config must contain 'vault' section")

        vault_config = _require_mapping(config['vault'], 'vault')
        bus_config = _require_mapping(config.get('bus') or {}, 'bus')

        administrators = vault_config.get('administrators') or []
        if not isinstance(administrators, list):
            raise ValueError("'administrators' must be a list of identities")

        loaded = VaultConfig(
            owner=vault_config.get('owner'),
            required_approvals=vault_config.get('required_approvals'),
            administrators=[str(a) for a in administrators],
            source_name=vault_config.get('source_name', "quorum-vault"),
            redis_url=bus_config.get('redis_url', "redis://localhost:6379/0"),
            stream_prefix=bus_config.get('stream_prefix', "quorum"),
            max_stream_length=bus_config.get('max_stream_length', 10000),
            socket_timeout=bus_config.get('socket_timeout', 5.0),
        )

        logger.info(
            f"Vault config loaded: owner={loaded.owner}, "
            f"threshold={loaded.required_approvals}, "
            f"administrators={len(loaded.administrators)}"
        )
        return loaded

    except Exception as e:
        logger.error(f"Failed to load vault config: {e}")
        raise
