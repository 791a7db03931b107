from pathlib import Path

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Record stores
    store_backend: str = "memory"  # "memory" | "local"
    data_dir: str = "data"

    # Client rule sets
    rules_path: str = "rules/clients.yaml"
    default_client_id: str = "DEFAULT"

    # Classification
    min_classification_confidence: float = 25.0
    medium_ocr_confidence: float = 75.0
    medium_ocr_threshold: float = 20.0
    ocr_confidence_floor: float = 60.0
    low_ocr_threshold: float = 15.0
    low_ocr_confidence_cap: float = 50.0
    fuzzy_match_ratio: float = 85.0

    # Logging
    log_level: str = "INFO"

    # Opik
    opik_workspace: str | None = None
    opik_project: str = "pod-engine"
    opik_api_key: str | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppConfig":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def for_tests(cls, rules_path: str | Path = "rules/clients.yaml") -> "AppConfig":
        """In-memory stores and the bundled rule sets."""
        return cls(store_backend="memory", rules_path=str(rules_path))
