import threading

from pod_engine.core.delivery import Delivery, DeliveryStatus
from pod_engine.core.document import ClassificationResult, Document, DocumentType
from pod_engine.core.errors import ConflictError, NotFoundError
from pod_engine.core.validation import ValidationResult
from pod_engine.services.store.base import DeliveryStore, DocumentStore, with_classification


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Records are copied in and out so callers never share state."""

    def __init__(self, documents: list[Document] | None = None):
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        for doc in documents or []:
            self.save(doc)

    def get(self, document_id: str) -> Document:
        with self._lock:
            doc = self._documents.get(document_id)
            if doc is None:
                raise NotFoundError("Document", document_id)
            return doc.model_copy(deep=True)

    def save(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = document.model_copy(deep=True)

    def create(self, document: Document) -> None:
        with self._lock:
            if document.id in self._documents:
                raise ConflictError(f"Document already exists: {document.id}")
            self._documents[document.id] = document.model_copy(deep=True)

    def save_classification(
        self,
        document_id: str,
        classification: ClassificationResult,
        replace_override: bool = False,
    ) -> Document:
        with self._lock:
            stored = self._documents.get(document_id)
            if stored is None:
                raise NotFoundError("Document", document_id)
            updated = with_classification(stored, classification, replace_override)
            self._documents[document_id] = updated.model_copy(deep=True)
            return updated

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._documents)


class InMemoryDeliveryStore(DeliveryStore):
    def __init__(self, deliveries: list[Delivery] | None = None):
        self._lock = threading.Lock()
        self._deliveries: dict[str, Delivery] = {}
        for delivery in deliveries or []:
            self.save(delivery)

    def get(self, delivery_id: str) -> Delivery:
        with self._lock:
            return self._get(delivery_id).model_copy(deep=True)

    def save(self, delivery: Delivery) -> None:
        with self._lock:
            self._deliveries[delivery.id] = delivery.model_copy(deep=True)

    def find_by_document(self, document_id: str) -> list[Delivery]:
        with self._lock:
            return [
                d.model_copy(deep=True) for d in self._deliveries.values()
                if document_id in d.document_ids()
            ]

    def set_document_type(self, delivery_id: str, document_id: str, detected_type: DocumentType) -> None:
        with self._lock:
            delivery = self._get(delivery_id)
            documents = [
                ref.model_copy(update={"detected_type": detected_type}) if ref.document_id == document_id else ref
                for ref in delivery.documents
            ]
            self._deliveries[delivery_id] = delivery.model_copy(update={"documents": documents})

    def record_validation(self, delivery_id: str, status: DeliveryStatus, result: ValidationResult) -> Delivery:
        with self._lock:
            updated = self._get(delivery_id).model_copy(
                update={"status": status, "validation_result": result.model_copy(deep=True), "last_error": None},
            )
            self._deliveries[delivery_id] = updated
            return updated.model_copy(deep=True)

    def record_failure(self, delivery_id: str, status: DeliveryStatus, error: str) -> Delivery:
        with self._lock:
            updated = self._get(delivery_id).model_copy(update={"status": status, "last_error": error})
            self._deliveries[delivery_id] = updated
            return updated.model_copy(deep=True)

    def _get(self, delivery_id: str) -> Delivery:
        delivery = self._deliveries.get(delivery_id)
        if delivery is None:
            raise NotFoundError("Delivery", delivery_id)
        return delivery
