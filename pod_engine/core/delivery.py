from enum import Enum

from pydantic import BaseModel, Field

from pod_engine.core.document import Document, DocumentType
from pod_engine.core.errors import InvalidTransitionError
from pod_engine.core.validation import ValidationResult


class DeliveryStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


ALLOWED_TRANSITIONS: dict[DeliveryStatus, set[DeliveryStatus]] = {
    DeliveryStatus.PENDING: {DeliveryStatus.COMPLETED, DeliveryStatus.FAILED},
    DeliveryStatus.COMPLETED: {DeliveryStatus.COMPLETED},
    DeliveryStatus.FAILED: {DeliveryStatus.COMPLETED, DeliveryStatus.FAILED},
}


def next_status(current: DeliveryStatus, target: DeliveryStatus) -> DeliveryStatus:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    return target


def status_after_failure(current: DeliveryStatus) -> DeliveryStatus:
    """A failed run marks PENDING/FAILED deliveries FAILED; COMPLETED ones keep their result."""
    if current == DeliveryStatus.COMPLETED:
        return current
    return next_status(current, DeliveryStatus.FAILED)


class DocumentRef(BaseModel):
    """Cached copy of a document's detected type.

    Must equal the referenced document's classification.detected_type; a
    mismatch is a stale entry found by `find_stale_references`.
    """
    document_id: str
    detected_type: DocumentType = DocumentType.UNKNOWN


class Delivery(BaseModel):
    id: str
    delivery_reference: str
    client_identifier: str | None = None
    documents: list[DocumentRef] = Field(default_factory=list)
    status: DeliveryStatus = DeliveryStatus.PENDING
    validation_result: ValidationResult | None = None
    last_error: str | None = None

    def document_ids(self) -> list[str]:
        return [ref.document_id for ref in self.documents]


class StaleReference(BaseModel):
    document_id: str
    cached_type: DocumentType
    actual_type: DocumentType


def find_stale_references(delivery: Delivery, documents: list[Document]) -> list[StaleReference]:
    by_id = {doc.id: doc for doc in documents}
    stale = []
    for ref in delivery.documents:
        doc = by_id.get(ref.document_id)
        if doc is None:
            continue
        if ref.detected_type != doc.detected_type:
            stale.append(StaleReference(
                document_id=ref.document_id,
                cached_type=ref.detected_type,
                actual_type=doc.detected_type,
            ))
    return stale
