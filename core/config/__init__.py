"""Vault configuration loading."""

from .vault_config import VaultConfig, load_vault_config

__all__ = ["VaultConfig", "load_vault_config"]
