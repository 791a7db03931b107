"""Unit tests for EngineBuilder."""
import pytest

from pod_engine.builder import EngineBuilder
from pod_engine.config import AppConfig
from pod_engine.core.errors import ConfigurationError
from pod_engine.services.classification.service import ClassificationService
from pod_engine.services.store.local import LocalDeliveryStore, LocalDocumentStore
from pod_engine.services.store.memory import InMemoryDeliveryStore, InMemoryDocumentStore
from pod_engine.services.validation_service import DeliveryValidationService
from pod_engine.validators.super8 import Super8Validator


def _config(rules_path, **overrides) -> AppConfig:
    return AppConfig(rules_path=str(rules_path), _env_file=None, **overrides)


class TestEngineBuilder:
    def test_memory_backend(self, rules_path):
        builder = EngineBuilder(_config(rules_path))
        assert isinstance(builder.document_store, InMemoryDocumentStore)
        assert isinstance(builder.delivery_store, InMemoryDeliveryStore)

    def test_local_backend(self, rules_path, tmp_path):
        builder = EngineBuilder(_config(rules_path, store_backend="local", data_dir=str(tmp_path)))
        assert isinstance(builder.document_store, LocalDocumentStore)
        assert isinstance(builder.delivery_store, LocalDeliveryStore)
        assert (tmp_path / "documents").is_dir()

    def test_unknown_backend_raises(self, rules_path):
        with pytest.raises(ValueError, match="Unknown store backend"):
            EngineBuilder(_config(rules_path, store_backend="mongo"))

    def test_registry_loaded_from_rules_path(self, rules_path):
        builder = EngineBuilder(_config(rules_path))
        assert builder.registry.is_initialized
        assert isinstance(builder.registry.get_validator("super8"), Super8Validator)

    def test_missing_rules_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            EngineBuilder(_config(tmp_path / "none.yaml"))

    def test_classifier_receives_config_thresholds(self, rules_path):
        builder = EngineBuilder(_config(rules_path, min_classification_confidence=40, low_ocr_confidence_cap=30))
        service = builder.build_classification_service()
        assert isinstance(service, ClassificationService)
        assert service.classifier.min_confidence == 40
        assert service.classifier.low_ocr_confidence_cap == 30

    def test_services_share_stores(self, rules_path):
        builder = EngineBuilder(_config(rules_path))
        classification = builder.build_classification_service()
        validation = builder.build_validation_service()
        assert isinstance(validation, DeliveryValidationService)
        assert classification.documents is validation.documents is builder.document_store
        assert validation.registry is builder.registry
