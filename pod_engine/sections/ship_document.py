from pod_engine.core.document import DocumentType
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import (
    MISSING_REQUIRED_FIELD,
    MISSING_SIGNATURE,
    MISSING_STAMP,
    Check,
    CheckStatus,
    PalletScenario,
)
from pod_engine.sections.base import BaseSection, ValidationContext, check, requirement
from pod_engine.services.extraction import extract_time_out
from pod_engine.services.marks import SignatureType, StampType, detect_signatures, detect_stamps

SHIP = DocumentType.SHIP_DOCUMENT


class ShipDocumentSection(BaseSection):
    name = "ship_document_validation"
    requires = (SHIP,)

    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        return rules.ship_document_validation.enabled

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        rules = ctx.rules.ship_document_validation
        doc = ctx.get(SHIP)
        stamps = detect_stamps(doc.raw_text)
        signatures = detect_signatures(doc.raw_text)
        with_pallets = ctx.scenario == PalletScenario.WITH_PALLETS
        checks = []

        if rules.require_dispatch_stamp:
            checks.append(requirement(
                ctx, SHIP, StampType.DISPATCH in stamps,
                "Dispatch stamp is present", "Dispatch stamp detected",
                "Ship Document missing required DISPATCH stamp", MISSING_STAMP, document_id=doc.id,
            ))
        if with_pallets and rules.require_pallet_stamp:
            checks.append(requirement(
                ctx, SHIP, StampType.PALLET in stamps,
                "Pallet stamp from dispatch is present", "Pallet stamp detected",
                "Ship Document missing required PALLET stamp (WITH pallets scenario)",
                MISSING_STAMP, document_id=doc.id,
            ))
        if not with_pallets and rules.require_no_pallet_stamp:
            checks.append(requirement(
                ctx, SHIP, StampType.NO_PALLET in stamps,
                '"No Pallet" stamp from dispatch is present', "No Pallet stamp detected",
                "Ship Document missing required NO_PALLET stamp (WITHOUT pallets scenario)",
                MISSING_STAMP, document_id=doc.id,
            ))
        if rules.require_security_signature:
            checks.append(requirement(
                ctx, SHIP, SignatureType.SECURITY in signatures,
                "Security signature is present", "Security signature detected",
                "Ship Document missing required SECURITY signature", MISSING_SIGNATURE, document_id=doc.id,
            ))
        if rules.require_driver_signature:
            checks.append(requirement(
                ctx, SHIP, SignatureType.DRIVER in signatures,
                "Driver signature is present", "Driver signature detected",
                "Ship Document missing required DRIVER signature", MISSING_SIGNATURE, document_id=doc.id,
            ))
        if rules.require_time_out_field:
            time_out = extract_time_out(doc.raw_text)
            if time_out is not None:
                checks.append(check(
                    "Time-out is indicated", CheckStatus.PASSED,
                    f"Time-out field detected: {time_out}", time_out=time_out,
                ))
            else:
                checks.append(check(
                    "Time-out is indicated", ctx.time_out_missing_status,
                    "Ship Document missing required time-out field", MISSING_REQUIRED_FIELD,
                    document_id=doc.id,
                ))

        return checks
