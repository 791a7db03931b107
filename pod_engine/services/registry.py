import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from pod_engine.core.errors import ConfigurationError
from pod_engine.core.rules import ClientRuleSet, ValidationRuleSet
from pod_engine.validators.base import BaseValidator
from pod_engine.validators.checklist import ChecklistValidator
from pod_engine.validators.super8 import Super8Validator

logger = logging.getLogger("pod_engine.registry")

VALIDATOR_KINDS: dict[str, type[BaseValidator]] = {
    ChecklistValidator.name: ChecklistValidator,
    Super8Validator.name: Super8Validator,
}


def normalize_client_id(client_id: str | None) -> str | None:
    if client_id is None or not client_id.strip():
        return None
    return client_id.strip().upper()


class ClientRuleRegistry:
    """Maps client identifiers to their rule set and validator.

    Populated once via `initialize` (or `load_yaml`). Each client gets one
    validator instance built with its own immutable rule set. Unknown clients
    resolve to the default client's entry.

    YAML format:
        clients:
          DEFAULT:
            client_name: Default
            validator: checklist
            rules:
              document_completeness:
                require_invoice: true
              ...
    """

    def __init__(self, default_client_id: str = "DEFAULT"):
        self._default_client_id = normalize_client_id(default_client_id)
        self._kinds: dict[str, type[BaseValidator]] = dict(VALIDATOR_KINDS)
        self._rule_sets: dict[str, ClientRuleSet] = {}
        self._validators: dict[str, BaseValidator] = {}
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def default_client_id(self) -> str | None:
        return self._default_client_id

    def register_validator(self, kind: str, validator_cls: type[BaseValidator]) -> None:
        """Make a validator implementation available to rule sets by name."""
        if self._initialized:
            raise ConfigurationError("Validator kinds must be registered before initialization")
        self._kinds[kind] = validator_cls

    def set_default(self, client_id: str) -> None:
        self._default_client_id = normalize_client_id(client_id)

    def load_yaml(self, path: str | Path) -> None:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Rule set file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        rule_sets = []
        for client_id, entry in (data.get("clients") or {}).items():
            try:
                rule_sets.append(ClientRuleSet(client_id=str(client_id), **(entry or {})))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid rule set for client {client_id}: {e}") from e
        self.initialize(rule_sets)

    def initialize(self, rule_sets: list[ClientRuleSet]) -> None:
        rule_sets_by_id: dict[str, ClientRuleSet] = {}
        validators: dict[str, BaseValidator] = {}
        for rule_set in rule_sets:
            if not rule_set.is_active:
                logger.info(f"Skipping inactive client {rule_set.client_id}")
                continue
            validator_cls = self._kinds.get(rule_set.validator)
            if validator_cls is None:
                raise ConfigurationError(
                    f"Unknown validator '{rule_set.validator}' for client {rule_set.client_id}"
                )
            rule_sets_by_id[rule_set.client_id] = rule_set
            validators[rule_set.client_id] = validator_cls(rule_set.rules)

        self._rule_sets = rule_sets_by_id
        self._validators = validators
        self._initialized = True
        logger.info(f"Loaded {len(validators)} client rule sets: {sorted(validators)}")
        if self._default_client_id not in validators:
            logger.warning(f"No default rule set '{self._default_client_id}' loaded")

    def list_clients(self) -> list[str]:
        self._require_initialized()
        return sorted(self._rule_sets)

    def get_validator(self, client_id: str | None) -> BaseValidator:
        return self._validators[self._resolve(client_id)]

    def get_rule_set(self, client_id: str | None) -> ValidationRuleSet:
        return self._rule_sets[self._resolve(client_id)].rules

    def get_client(self, client_id: str | None) -> ClientRuleSet:
        return self._rule_sets[self._resolve(client_id)]

    def _resolve(self, client_id: str | None) -> str:
        self._require_initialized()
        key = normalize_client_id(client_id)
        if key is not None and key in self._validators:
            return key
        if self._default_client_id in self._validators:
            if key is not None:
                logger.warning(f"No rule set for client {key}, using default {self._default_client_id}")
            return self._default_client_id
        raise ConfigurationError(f"No validator for client {key} and no default rule set")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ConfigurationError("Client rule registry used before initialization")
