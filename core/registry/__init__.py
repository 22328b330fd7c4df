"""Administrator membership for the vault."""

from .administrator_registry import AdministratorRegistry

__all__ = ["AdministratorRegistry"]
