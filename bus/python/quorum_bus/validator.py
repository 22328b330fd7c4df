"""
Contract validation for the vault event bus.

Every message is checked against its JSON schema before it leaves the vault.
"""

import json
from pathlib import Path
from typing import Dict, Any, List

from jsonschema import Draft202012Validator, FormatChecker


class ContractValidator:
    """Validates audit messages against vault contracts."""

    def __init__(self, contracts_dir: Path):
        """
        Initialize validator with contracts directory.

        Args:
            contracts_dir: Directory containing *.schema.json files
        """
        self.contracts_dir = Path(contracts_dir)
        self._validators: Dict[str, Draft202012Validator] = {}
        self._load_schemas()

    def _load_schemas(self) -> None:
        if not self.contracts_dir.is_dir():
            raise ValueError(f"Contracts directory does not exist: {self.contracts_dir}")

        for schema_file in sorted(self.contracts_dir.glob("*.schema.json")):
            contract_type = schema_file.name[: -len(".schema.json")]
            with open(schema_file) as f:
                schema = json.load(f)
            Draft202012Validator.check_schema(schema)
            self._validators[contract_type] = Draft202012Validator(
                schema, format_checker=FormatChecker()
            )

    @property
    def contract_types(self) -> List[str]:
        return list(self._validators)

    def validate(self, message: Dict[str, Any], contract_type: str) -> None:
        """
        Validate message against a contract.

        Args:
            message: Message to validate
            contract_type: Contract name, e.g. "vault_event"

        Raises:
            ValueError: If the contract is unknown
            ValidationError: If the message violates the contract
        """
        if contract_type not in self._validators:
            raise ValueError(f"Unknown contract: {contract_type}")

        self._validators[contract_type].validate(message)
