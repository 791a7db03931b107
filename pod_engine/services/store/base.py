from abc import ABC, abstractmethod

from pod_engine.core.delivery import Delivery, DeliveryStatus
from pod_engine.core.document import ClassificationResult, Document, DocumentType
from pod_engine.core.errors import ConflictError
from pod_engine.core.validation import ValidationResult


class DocumentStore(ABC):
    @abstractmethod
    def get(self, document_id: str) -> Document:
        """Return the document. Raises NotFoundError if absent."""
        ...

    @abstractmethod
    def save(self, document: Document) -> None:
        """Insert or replace the whole document record."""
        ...

    @abstractmethod
    def create(self, document: Document) -> None:
        """Insert a new document. Raises ConflictError if the id is taken."""
        ...

    @abstractmethod
    def save_classification(
        self,
        document_id: str,
        classification: ClassificationResult,
        replace_override: bool = False,
    ) -> Document:
        """Replace only the classification, checked against the stored record in the same write.

        An automatic result never replaces a stored manual override unless
        `replace_override` is set; ConflictError is raised instead.
        """
        ...

    @abstractmethod
    def list_ids(self) -> list[str]:
        ...

    def get_many(self, document_ids: list[str]) -> list[Document]:
        return [self.get(document_id) for document_id in document_ids]


class DeliveryStore(ABC):
    @abstractmethod
    def get(self, delivery_id: str) -> Delivery:
        """Return the delivery. Raises NotFoundError if absent."""
        ...

    @abstractmethod
    def save(self, delivery: Delivery) -> None:
        ...

    @abstractmethod
    def find_by_document(self, document_id: str) -> list[Delivery]:
        """Deliveries whose document list references the document."""
        ...

    @abstractmethod
    def set_document_type(self, delivery_id: str, document_id: str, detected_type: DocumentType) -> None:
        """Update one cached document type in a single write."""
        ...

    @abstractmethod
    def record_validation(self, delivery_id: str, status: DeliveryStatus, result: ValidationResult) -> Delivery:
        """Replace status and validation result in a single write, clearing last_error."""
        ...

    @abstractmethod
    def record_failure(self, delivery_id: str, status: DeliveryStatus, error: str) -> Delivery:
        """Set status and last_error in a single write. The validation result is untouched."""
        ...


def with_classification(document: Document, classification: ClassificationResult, replace_override: bool) -> Document:
    """Copy of the stored document carrying the new classification, or ConflictError."""
    if document.has_manual_override and not classification.manual_override and not replace_override:
        raise ConflictError(f"Document {document.id} has a manual override; automatic result not written")
    return document.model_copy(update={"classification": classification})
