"""Unit tests for AppConfig."""
from pathlib import Path

import pytest

from pod_engine.config import AppConfig

ROOT = Path(__file__).parent.parent.parent


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Prevent real env vars and .env file from leaking into tests."""
    monkeypatch.chdir(tmp_path)
    for key in ("STORE_BACKEND", "RULES_PATH", "DEFAULT_CLIENT_ID", "OPIK_API_KEY", "OPIK_WORKSPACE", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


class TestAppConfig:
    def test_creates_with_defaults(self):
        config = AppConfig()
        assert config.store_backend == "memory"
        assert config.data_dir == "data"
        assert config.rules_path == "rules/clients.yaml"
        assert config.default_client_id == "DEFAULT"
        assert config.min_classification_confidence == 25
        assert config.ocr_confidence_floor == 60
        assert config.low_ocr_confidence_cap == 50
        assert config.fuzzy_match_ratio == 85
        assert config.opik_project == "pod-engine"

    def test_from_yaml(self, tmp_path):
        yaml_content = """\
store_backend: local
data_dir: /var/pod
default_client_id: SUPER8
min_classification_confidence: 30
opik_project: my-project
"""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text(yaml_content)

        config = AppConfig.from_yaml(yaml_file)
        assert config.store_backend == "local"
        assert config.data_dir == "/var/pod"
        assert config.default_client_id == "SUPER8"
        assert config.min_classification_confidence == 30
        assert config.opik_project == "my-project"

    def test_from_empty_yaml(self, tmp_path):
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("")
        assert AppConfig.from_yaml(yaml_file).store_backend == "memory"

    def test_from_yaml_with_real_config(self):
        config = AppConfig.from_yaml(ROOT / "config.yaml")
        assert config.store_backend == "memory"
        assert config.rules_path == "rules/clients.yaml"

    def test_for_tests(self):
        config = AppConfig.for_tests(rules_path=ROOT / "rules" / "clients.yaml")
        assert config.store_backend == "memory"
        assert config.rules_path.endswith("clients.yaml")

    def test_optional_fields_default_to_none(self):
        config = AppConfig()
        assert config.opik_api_key is None
        assert config.opik_workspace is None

    def test_reads_opik_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPIK_API_KEY", "op-test-456")
        config = AppConfig()
        assert config.opik_api_key == "op-test-456"

    def test_env_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "local")
        assert AppConfig().store_backend == "local"

    def test_reads_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("DEFAULT_CLIENT_ID=ACME\n")
        assert AppConfig().default_client_id == "ACME"
