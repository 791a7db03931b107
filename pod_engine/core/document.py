from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    INVOICE = "INVOICE"
    RAR = "RAR"
    PALLET_NOTIFICATION_LETTER = "PALLET_NOTIFICATION_LETTER"
    LOSCAM_DOCUMENT = "LOSCAM_DOCUMENT"
    CUSTOMER_PALLET_RECEIVING = "CUSTOMER_PALLET_RECEIVING"
    SHIP_DOCUMENT = "SHIP_DOCUMENT"
    UNKNOWN = "UNKNOWN"


PALLET_DOCUMENT_TYPES = (
    DocumentType.PALLET_NOTIFICATION_LETTER,
    DocumentType.LOSCAM_DOCUMENT,
    DocumentType.CUSTOMER_PALLET_RECEIVING,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileMetadata(BaseModel):
    original_name: str = ""
    size: int = 0
    mime_type: str = "application/pdf"


class LineItem(BaseModel):
    item_code: str
    description: str = ""
    quantity: float


class ExtractedFields(BaseModel):
    """Fields pulled out of the page by the upstream extraction step.

    Any field left as None is extracted from the raw OCR text instead.
    """
    po_number: str | None = None
    total_cases: float | None = None
    items: list[LineItem] | None = None


class AlternativeType(BaseModel):
    type: DocumentType
    confidence: float


class AutomaticClassification(BaseModel):
    """Classification produced by the keyword classifier."""
    kind: Literal["automatic"] = "automatic"
    detected_type: DocumentType = DocumentType.UNKNOWN
    confidence: float = 0.0
    alternative_types: list[AlternativeType] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    manual_override: Literal[False] = False
    inferred_from_context: bool = False
    classified_at: datetime | None = None


class ManualOverrideClassification(BaseModel):
    """Classification set by an operator. Reason, actor and timestamp are always set together."""
    kind: Literal["manual_override"] = "manual_override"
    detected_type: DocumentType
    confidence: float = 100.0
    alternative_types: list[AlternativeType] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    manual_override: Literal[True] = True
    override_reason: str = Field(min_length=1)
    override_by: str = Field(min_length=1)
    override_timestamp: datetime
    inferred_from_context: Literal[False] = False


ClassificationResult = Annotated[
    Union[AutomaticClassification, ManualOverrideClassification],
    Field(discriminator="kind"),
]


class Document(BaseModel):
    """One scanned page/file belonging to a delivery."""
    id: str
    file_metadata: FileMetadata = Field(default_factory=FileMetadata)
    raw_text: str = ""
    ocr_confidence: float = Field(default=100.0, ge=0, le=100)
    extracted: ExtractedFields | None = None
    classification: ClassificationResult | None = None

    @property
    def detected_type(self) -> DocumentType:
        if self.classification is None:
            return DocumentType.UNKNOWN
        return self.classification.detected_type

    @property
    def has_manual_override(self) -> bool:
        return isinstance(self.classification, ManualOverrideClassification)
