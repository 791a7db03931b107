import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import BaseModel

from pod_engine.core.delivery import Delivery, DeliveryStatus
from pod_engine.core.document import ClassificationResult, Document, DocumentType
from pod_engine.core.errors import ConflictError, NotFoundError
from pod_engine.core.validation import ValidationResult
from pod_engine.services.store.base import DeliveryStore, DocumentStore, with_classification

logger = logging.getLogger("pod_engine.store")


def _write_atomic(path: Path, record: BaseModel) -> None:
    """Write to a temp file in the same directory, then rename over the target."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(record.model_dump_json(indent=2))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class LocalDocumentStore(DocumentStore):
    """One JSON file per document.

    Directory structure:
        data/
        └── documents/
            ├── doc-1.json
            └── doc-2.json
    """

    def __init__(self, data_dir: str | Path):
        self._dir = Path(data_dir) / "documents"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def get(self, document_id: str) -> Document:
        path = self._dir / f"{document_id}.json"
        if not path.exists():
            raise NotFoundError("Document", document_id)
        return Document.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, document: Document) -> None:
        with self._lock:
            _write_atomic(self._dir / f"{document.id}.json", document)

    def create(self, document: Document) -> None:
        with self._lock:
            path = self._dir / f"{document.id}.json"
            if path.exists():
                raise ConflictError(f"Document already exists: {document.id}")
            _write_atomic(path, document)

    def save_classification(
        self,
        document_id: str,
        classification: ClassificationResult,
        replace_override: bool = False,
    ) -> Document:
        with self._lock:
            updated = with_classification(self.get(document_id), classification, replace_override)
            _write_atomic(self._dir / f"{document_id}.json", updated)
            return updated

    def list_ids(self) -> list[str]:
        return sorted(p.stem for p in self._dir.glob("*.json"))


class LocalDeliveryStore(DeliveryStore):
    """One JSON file per delivery. Every mutation rewrites the whole file under a lock."""

    def __init__(self, data_dir: str | Path):
        self._dir = Path(data_dir) / "deliveries"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def get(self, delivery_id: str) -> Delivery:
        path = self._dir / f"{delivery_id}.json"
        if not path.exists():
            raise NotFoundError("Delivery", delivery_id)
        return Delivery.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, delivery: Delivery) -> None:
        with self._lock:
            _write_atomic(self._dir / f"{delivery.id}.json", delivery)

    def find_by_document(self, document_id: str) -> list[Delivery]:
        deliveries = []
        for path in sorted(self._dir.glob("*.json")):
            delivery = Delivery.model_validate_json(path.read_text(encoding="utf-8"))
            if document_id in delivery.document_ids():
                deliveries.append(delivery)
        return deliveries

    def set_document_type(self, delivery_id: str, document_id: str, detected_type: DocumentType) -> None:
        with self._lock:
            delivery = self.get(delivery_id)
            for ref in delivery.documents:
                if ref.document_id == document_id:
                    ref.detected_type = detected_type
            _write_atomic(self._dir / f"{delivery_id}.json", delivery)

    def record_validation(self, delivery_id: str, status: DeliveryStatus, result: ValidationResult) -> Delivery:
        with self._lock:
            delivery = self.get(delivery_id)
            delivery.status = status
            delivery.validation_result = result
            delivery.last_error = None
            _write_atomic(self._dir / f"{delivery_id}.json", delivery)
            return delivery

    def record_failure(self, delivery_id: str, status: DeliveryStatus, error: str) -> Delivery:
        with self._lock:
            delivery = self.get(delivery_id)
            delivery.status = status
            delivery.last_error = error
            _write_atomic(self._dir / f"{delivery_id}.json", delivery)
            logger.info(f"Delivery {delivery_id} marked {status.value}: {error}")
            return delivery
