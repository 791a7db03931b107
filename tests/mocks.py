from pod_engine.core.delivery import Delivery, DocumentRef
from pod_engine.core.document import (
    AutomaticClassification,
    Document,
    DocumentType,
    ExtractedFields,
    FileMetadata,
    ManualOverrideClassification,
    utcnow,
)
from pod_engine.core.validation import Check
from pod_engine.sections.base import BaseSection, ValidationContext
from pod_engine.validators.base import BaseValidator


INVOICE_TEXT = """SALES INVOICE
Invoice No: INV-2024-0042
Invoice Date: 2024-03-01
Bill To: Super 8 Retail Systems
PO Number: PO-77812
Total Cases: 120
Total Amount: 45,300.00
"""

RAR_TEXT = """RECEIVING ACKNOWLEDGEMENT RECEIPT
RAR No: 55102
Supplier Invoice No: INV-2024-0042
PO Number: PO-77812
Total Cases: 120
Received by: J. Santos
"""

# Invoice-heavy page with a single RAR marker at the bottom
INVOICE_WITH_RAR_MARKER_TEXT = """INVOICE
Invoice No: 8812
Invoice Number 8812
Invoice Date 2024-03-01
Bill To: Metro Mart
PO Number: PO-1
Total Amount: 1000
RAR
Received by: store
"""

SHIP_TEXT = """SHIPMENT DOCUMENT
Dispatch Date: 2024-03-01
Carrier: FastTrans Logistics
Driver: R. Cruz
Consignee: Super 8 Retail
Dispatched
Guard on duty: signed
Time-out: 14:30
"""

PALLET_LETTER_TEXT = """PALLET NOTIFICATION LETTER
Warehouse stamp received
Warehouse staff signature: M. Reyes
Pallets: 4
"""

LOSCAM_TEXT = """LOSCAM PHILIPPINES
Customer Transaction Docket
Pallet exchange: 4 pallets
Received by: store receiver
Sent by: R. Cruz
"""

CUSTOMER_PALLET_RECEIVING_TEXT = """CUSTOMER PALLET RECEIVING
Plate Number: ABC-1234
Received Qty: 4
"""

# Badly scanned ship document: no keyword survives OCR
GARBLED_SHIP_TEXT = """D1SP4TCH 0FF1CE
Pallet stamp: 4 pallets
Time-out: 13:05
guard signature
"""


def make_document(
    doc_id: str,
    doc_type: DocumentType | None = None,
    text: str = "",
    confidence: float = 90.0,
    ocr_confidence: float = 95.0,
    extracted: ExtractedFields | None = None,
    inferred: bool = False,
) -> Document:
    """Document with an automatic classification already set (None when doc_type is None)."""
    classification = None
    if doc_type is not None:
        classification = AutomaticClassification(
            detected_type=doc_type,
            confidence=confidence,
            inferred_from_context=inferred,
            classified_at=utcnow(),
        )
    return Document(
        id=doc_id,
        file_metadata=FileMetadata(original_name=f"{doc_id}.pdf", size=1024, mime_type="application/pdf"),
        raw_text=text,
        ocr_confidence=ocr_confidence,
        extracted=extracted,
        classification=classification,
    )


def make_override(doc_id: str, doc_type: DocumentType, text: str = "") -> Document:
    return Document(
        id=doc_id,
        raw_text=text,
        classification=ManualOverrideClassification(
            detected_type=doc_type,
            override_reason="Checked against the paper copy",
            override_by="ops@example.com",
            override_timestamp=utcnow(),
        ),
    )


def make_delivery(delivery_id: str, documents: list[Document], client: str | None = None) -> Delivery:
    return Delivery(
        id=delivery_id,
        delivery_reference=f"REF-{delivery_id}",
        client_identifier=client,
        documents=[DocumentRef(document_id=d.id, detected_type=d.detected_type) for d in documents],
    )


def standard_documents(rar_text: str = RAR_TEXT) -> list[Document]:
    return [
        make_document("inv", DocumentType.INVOICE, INVOICE_TEXT),
        make_document("rar", DocumentType.RAR, rar_text),
        make_document("ship", DocumentType.SHIP_DOCUMENT, SHIP_TEXT),
    ]


class ExplodingSection(BaseSection):
    """Section that raises on evaluation."""
    name = "exploding"

    def is_enabled(self, rules) -> bool:
        return True

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        raise RuntimeError("boom")


class ExplodingValidator(BaseValidator):
    name = "exploding"
    sections = (ExplodingSection,)
