import logging

import opik

from pod_engine.core.delivery import (
    Delivery,
    DeliveryStatus,
    StaleReference,
    find_stale_references,
    next_status,
    status_after_failure,
)
from pod_engine.core.document import Document
from pod_engine.core.errors import ConfigurationError, ValidationExecutionError
from pod_engine.core.validation import ValidationResult
from pod_engine.services.registry import ClientRuleRegistry
from pod_engine.services.store.base import DeliveryStore, DocumentStore

logger = logging.getLogger("pod_engine.validation")


class DeliveryValidationService:
    """Runs a delivery's validator and persists the outcome.

    A successful run replaces status and result in one write. A failed run
    only records the error (and FAILED status where the transition allows it);
    the previous result stays as it was.
    """

    def __init__(self, registry: ClientRuleRegistry, documents: DocumentStore, deliveries: DeliveryStore):
        self.registry = registry
        self.documents = documents
        self.deliveries = deliveries

    @opik.track(name="run_validation")
    def run_validation(self, delivery_id: str) -> ValidationResult:
        delivery = self.deliveries.get(delivery_id)
        documents = self.documents.get_many(delivery.document_ids())
        delivery = self._reconcile(delivery, documents)

        try:
            validator = self.registry.get_validator(delivery.client_identifier)
            result = validator.validate(delivery, documents)
        except (ConfigurationError, ValidationExecutionError) as e:
            logger.error(f"Validation of delivery {delivery_id} failed: {e}")
            self.deliveries.record_failure(delivery_id, status_after_failure(delivery.status), str(e))
            raise

        self.deliveries.record_validation(
            delivery_id, next_status(delivery.status, DeliveryStatus.COMPLETED), result,
        )
        logger.info(f"Delivery {delivery_id} validation completed: {result.status.value}")
        return result

    def check_consistency(self, delivery_id: str) -> list[StaleReference]:
        """Cached document types that disagree with the document records."""
        delivery = self.deliveries.get(delivery_id)
        return find_stale_references(delivery, self.documents.get_many(delivery.document_ids()))

    def reconcile(self, delivery_id: str) -> list[StaleReference]:
        """Rewrite stale cached types from the document records. Returns what was repaired."""
        delivery = self.deliveries.get(delivery_id)
        documents = self.documents.get_many(delivery.document_ids())
        stale = find_stale_references(delivery, documents)
        self._repair(delivery, stale)
        return stale

    def _reconcile(self, delivery: Delivery, documents: list[Document]) -> Delivery:
        stale = find_stale_references(delivery, documents)
        if not stale:
            return delivery
        self._repair(delivery, stale)
        return self.deliveries.get(delivery.id)

    def _repair(self, delivery: Delivery, stale: list[StaleReference]) -> None:
        for ref in stale:
            logger.warning(
                f"Delivery {delivery.id}: cached type of document {ref.document_id} was "
                f"{ref.cached_type.value}, document says {ref.actual_type.value}; repairing"
            )
            self.deliveries.set_document_type(delivery.id, ref.document_id, ref.actual_type)
