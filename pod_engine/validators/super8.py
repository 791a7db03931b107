import logging

from pod_engine.core.delivery import Delivery
from pod_engine.core.document import PALLET_DOCUMENT_TYPES, Document, DocumentType
from pod_engine.core.validation import CheckStatus
from pod_engine.sections.base import ValidationContext
from pod_engine.services.marks import SignatureType
from pod_engine.validators.base import BaseValidator

logger = logging.getLogger("pod_engine.validation")


class Super8Validator(BaseValidator):
    """Validator for SUPER8 deliveries.

    SUPER8 ship documents are often scanned badly enough to classify as
    UNKNOWN. When the three pallet documents are present, the ship document
    is missing and exactly one document is UNKNOWN, that document fills the
    ship document role and its failed checks are reported as warnings.
    Loscam documents are countersigned by the receiver rather than the
    customer, and the time-out field is often handwritten.
    """

    name = "super8"

    def build_context(self, delivery: Delivery, documents: list[Document]) -> ValidationContext:
        ctx = super().build_context(delivery, documents)
        ctx.customer_signature_types = (SignatureType.CUSTOMER, SignatureType.RECEIVER)
        ctx.time_out_missing_status = CheckStatus.WARNING

        unknown = [doc for doc in documents if doc.detected_type == DocumentType.UNKNOWN]
        if (
            not ctx.has(DocumentType.SHIP_DOCUMENT)
            and all(ctx.has(t) for t in PALLET_DOCUMENT_TYPES)
            and len(unknown) == 1
        ):
            ctx.resolved[DocumentType.SHIP_DOCUMENT] = unknown[0]
            ctx.lenient_types.add(DocumentType.SHIP_DOCUMENT)
            logger.info(f"Delivery {delivery.id}: using UNKNOWN document {unknown[0].id} as ship document")
        return ctx
