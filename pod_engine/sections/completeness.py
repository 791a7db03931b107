from pod_engine.core.document import DocumentType, ManualOverrideClassification
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import (
    DOCUMENT_TYPE_UNKNOWN,
    INFERRED_DOCUMENT_TYPE,
    LOW_CONFIDENCE,
    MISSING_REQUIRED_DOCUMENT,
    Check,
    CheckStatus,
)
from pod_engine.sections.base import BaseSection, ValidationContext, check


class DocumentCompletenessSection(BaseSection):
    name = "document_completeness"

    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        return rules.document_completeness.enabled

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        rules = ctx.rules.document_completeness
        checks = []

        for doc_type in ctx.required_types:
            if ctx.has(doc_type):
                checks.append(check(
                    f"{doc_type.value} present", CheckStatus.PASSED,
                    f"{doc_type.value} found", document_id=ctx.get(doc_type).id,
                ))
            else:
                checks.append(check(
                    f"{doc_type.value} present", CheckStatus.FAILED,
                    f"Missing required document: {doc_type.value} ({ctx.scenario.value} scenario)",
                    MISSING_REQUIRED_DOCUMENT,
                ))

        inferred_ids = {doc.id for t, doc in ctx.resolved.items() if t in ctx.lenient_types}
        for doc in ctx.documents:
            classification = doc.classification
            if doc.detected_type == DocumentType.UNKNOWN:
                if rules.flag_unknown_documents and doc.id not in inferred_ids:
                    checks.append(check(
                        f"Document {doc.id} type identified", CheckStatus.WARNING,
                        f"Unable to identify type of document {doc.id} "
                        f"(confidence too low or unrecognized format)",
                        DOCUMENT_TYPE_UNKNOWN, document_id=doc.id,
                    ))
                continue
            if isinstance(classification, ManualOverrideClassification):
                continue
            if classification.inferred_from_context:
                checks.append(check(
                    f"Document {doc.id} type evidence", CheckStatus.WARNING,
                    f"Type {doc.detected_type.value} of document {doc.id} was inferred from the other "
                    f"documents in the delivery, not from its own text",
                    INFERRED_DOCUMENT_TYPE, document_id=doc.id,
                ))
            elif classification.confidence < rules.low_confidence_threshold:
                checks.append(check(
                    f"Document {doc.id} classification confidence", CheckStatus.WARNING,
                    f"Low classification confidence for {doc.detected_type.value} document {doc.id}: "
                    f"{classification.confidence}% < {rules.low_confidence_threshold}%",
                    LOW_CONFIDENCE, document_id=doc.id, confidence=classification.confidence,
                ))

        return checks
