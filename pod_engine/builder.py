"""EngineBuilder: wires stores, classifier, rule registry and services based on AppConfig."""
from pod_engine.config import AppConfig
from pod_engine.services.classification.classifier import KeywordClassifier
from pod_engine.services.classification.service import ClassificationService
from pod_engine.services.registry import ClientRuleRegistry
from pod_engine.services.store.base import DeliveryStore, DocumentStore
from pod_engine.services.store.local import LocalDeliveryStore, LocalDocumentStore
from pod_engine.services.store.memory import InMemoryDeliveryStore, InMemoryDocumentStore
from pod_engine.services.validation_service import DeliveryValidationService


class EngineBuilder:
    """Builds the classification and validation services from config."""

    def __init__(self, config: AppConfig):
        self.config = config

        self._document_store, self._delivery_store = self._build_stores()
        self._classifier = self._build_classifier()
        self._registry = self._build_registry()

    @property
    def document_store(self) -> DocumentStore:
        return self._document_store

    @property
    def delivery_store(self) -> DeliveryStore:
        return self._delivery_store

    @property
    def registry(self) -> ClientRuleRegistry:
        return self._registry

    def build_classification_service(self) -> ClassificationService:
        return ClassificationService(
            classifier=self._classifier,
            documents=self._document_store,
            deliveries=self._delivery_store,
        )

    def build_validation_service(self) -> DeliveryValidationService:
        return DeliveryValidationService(
            registry=self._registry,
            documents=self._document_store,
            deliveries=self._delivery_store,
        )

    def _build_stores(self) -> tuple[DocumentStore, DeliveryStore]:
        if self.config.store_backend == "memory":
            return InMemoryDocumentStore(), InMemoryDeliveryStore()
        if self.config.store_backend == "local":
            return LocalDocumentStore(self.config.data_dir), LocalDeliveryStore(self.config.data_dir)
        raise ValueError(f"Unknown store backend: {self.config.store_backend}")

    def _build_classifier(self) -> KeywordClassifier:
        return KeywordClassifier(
            min_confidence=self.config.min_classification_confidence,
            medium_ocr_confidence=self.config.medium_ocr_confidence,
            medium_ocr_threshold=self.config.medium_ocr_threshold,
            ocr_confidence_floor=self.config.ocr_confidence_floor,
            low_ocr_threshold=self.config.low_ocr_threshold,
            low_ocr_confidence_cap=self.config.low_ocr_confidence_cap,
            fuzzy_match_ratio=self.config.fuzzy_match_ratio,
        )

    def _build_registry(self) -> ClientRuleRegistry:
        registry = ClientRuleRegistry(default_client_id=self.config.default_client_id)
        registry.load_yaml(self.config.rules_path)
        return registry
