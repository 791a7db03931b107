import logging

import opik

from pod_engine.core.document import (
    AutomaticClassification,
    ClassificationResult,
    Document,
    DocumentType,
    ManualOverrideClassification,
    utcnow,
)
from pod_engine.core.errors import ConflictError
from pod_engine.services.classification.classifier import ClassificationContext, KeywordClassifier
from pod_engine.services.store.base import DeliveryStore, DocumentStore

logger = logging.getLogger("pod_engine.classification")


class ClassificationService:
    """Classifies stored documents and keeps each delivery's cached types in step.

    Every write updates the document record first and then the cached type on
    each delivery referencing it. A crash between the two leaves a stale cache
    entry that `DeliveryValidationService.reconcile` repairs.
    """

    def __init__(self, classifier: KeywordClassifier, documents: DocumentStore, deliveries: DeliveryStore):
        self.classifier = classifier
        self.documents = documents
        self.deliveries = deliveries

    @opik.track(name="classify_stored_document")
    def classify_document(self, document_id: str, force: bool = False) -> ClassificationResult:
        """Classify a stored document.

        A manual override is returned unchanged unless `force` is set, in which
        case it is discarded and the document is classified from its text. An
        override applied while the classifier runs is kept: the store refuses
        the automatic write and the override is returned.
        """
        document = self.documents.get(document_id)
        if document.has_manual_override and not force:
            logger.info(f"Document {document_id} keeps its manual override ({document.detected_type.value})")
            return document.classification
        if force and document.has_manual_override:
            logger.warning(f"Discarding manual override on document {document_id}")
            document = document.model_copy(update={"classification": None})

        result = self.classifier.classify(document, self._context_for(document))
        if not isinstance(result, AutomaticClassification):
            raise TypeError(f"Expected an automatic classification, got {type(result).__name__}")
        try:
            self._write(document_id, result, replace_override=force)
        except ConflictError:
            kept = self.documents.get(document_id).classification
            logger.info(
                f"Manual override on document {document_id} landed during classification, "
                f"keeping {kept.detected_type.value}"
            )
            return kept
        logger.info(
            f"Classified document {document_id} as {result.detected_type.value} "
            f"(confidence {result.confidence}{', inferred' if result.inferred_from_context else ''})"
        )
        return result

    def apply_manual_override(
        self,
        document_id: str,
        detected_type: DocumentType | str,
        reason: str,
        actor: str,
    ) -> ManualOverrideClassification:
        document = self.documents.get(document_id)
        previous = document.classification
        result = ManualOverrideClassification(
            detected_type=DocumentType(detected_type),
            override_reason=reason.strip(),
            override_by=actor.strip(),
            override_timestamp=utcnow(),
            alternative_types=previous.alternative_types if previous else [],
            matched_keywords=previous.matched_keywords if previous else [],
        )
        self._write(document_id, result)
        logger.info(
            f"Manual override on document {document_id}: {document.detected_type.value} -> "
            f"{result.detected_type.value} by {result.override_by}"
        )
        return result

    @opik.track(name="reclassify_delivery")
    def reclassify_delivery(self, delivery_id: str, force: bool = False) -> dict[str, ClassificationResult]:
        delivery = self.deliveries.get(delivery_id)
        # Fail before writing anything if a referenced document is missing
        self.documents.get_many(delivery.document_ids())
        return {
            document_id: self.classify_document(document_id, force=force)
            for document_id in delivery.document_ids()
        }

    def _context_for(self, document: Document) -> ClassificationContext:
        sibling_types = []
        seen = {document.id}
        for delivery in self.deliveries.find_by_document(document.id):
            for document_id in delivery.document_ids():
                if document_id in seen:
                    continue
                seen.add(document_id)
                sibling_types.append(self.documents.get(document_id).detected_type)
        return ClassificationContext(sibling_types=sibling_types)

    def _write(self, document_id: str, result: ClassificationResult, replace_override: bool = False) -> None:
        stored = self.documents.save_classification(document_id, result, replace_override)
        for delivery in self.deliveries.find_by_document(document_id):
            self.deliveries.set_document_type(delivery.id, document_id, stored.detected_type)
