from pod_engine.core.document import PALLET_DOCUMENT_TYPES, DocumentType
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import MISSING_SIGNATURE, MISSING_STAMP, Check, PalletScenario
from pod_engine.sections.base import BaseSection, ValidationContext, requirement
from pod_engine.services.marks import SignatureType, StampType, detect_signatures, detect_stamps


class PalletValidationSection(BaseSection):
    name = "pallet_validation"

    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        return rules.pallet_validation.enabled

    def skip_reason(self, ctx: ValidationContext) -> str | None:
        if ctx.scenario != PalletScenario.WITH_PALLETS:
            return "No pallets scenario"
        if not any(ctx.has(t) for t in PALLET_DOCUMENT_TYPES):
            return "No pallet documents present"
        return None

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        rules = ctx.rules.pallet_validation
        checks = []

        letter = ctx.get(DocumentType.PALLET_NOTIFICATION_LETTER)
        if letter is not None:
            stamps = detect_stamps(letter.raw_text)
            signatures = detect_signatures(letter.raw_text)
            if rules.require_warehouse_stamp:
                checks.append(requirement(
                    ctx, DocumentType.PALLET_NOTIFICATION_LETTER, StampType.WAREHOUSE in stamps,
                    "Pallet Notification Letter has warehouse stamp",
                    "Warehouse stamp detected",
                    "Pallet Notification Letter missing required WAREHOUSE stamp",
                    MISSING_STAMP, document_id=letter.id,
                ))
            if rules.require_warehouse_signature:
                checks.append(requirement(
                    ctx, DocumentType.PALLET_NOTIFICATION_LETTER, SignatureType.WAREHOUSE_STAFF in signatures,
                    "Pallet Notification Letter has warehouse signature",
                    "Warehouse signature detected",
                    "Pallet Notification Letter missing required WAREHOUSE_STAFF signature",
                    MISSING_SIGNATURE, document_id=letter.id,
                ))

        loscam = ctx.get(DocumentType.LOSCAM_DOCUMENT)
        if loscam is not None:
            stamps = detect_stamps(loscam.raw_text)
            signatures = detect_signatures(loscam.raw_text)
            if rules.require_loscam_stamp:
                checks.append(requirement(
                    ctx, DocumentType.LOSCAM_DOCUMENT, StampType.LOSCAM in stamps,
                    "Loscam document has loscam stamp",
                    "Loscam stamp detected",
                    "Loscam Document missing required LOSCAM stamp",
                    MISSING_STAMP, document_id=loscam.id,
                ))
            if rules.require_customer_signature:
                checks.append(requirement(
                    ctx, DocumentType.LOSCAM_DOCUMENT,
                    any(sig in signatures for sig in ctx.customer_signature_types),
                    "Loscam document is signed by the customer",
                    "Customer signature detected",
                    "Loscam Document missing required CUSTOMER signature",
                    MISSING_SIGNATURE, document_id=loscam.id,
                ))
            if rules.require_driver_signature:
                checks.append(requirement(
                    ctx, DocumentType.LOSCAM_DOCUMENT, SignatureType.DRIVER in signatures,
                    "Loscam document is signed by the driver",
                    "Driver signature detected",
                    "Loscam Document missing required DRIVER signature",
                    MISSING_SIGNATURE, document_id=loscam.id,
                ))

        return checks
