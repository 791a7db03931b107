import logging

import opik

from pod_engine.core.delivery import Delivery
from pod_engine.core.document import PALLET_DOCUMENT_TYPES, Document, DocumentType, utcnow
from pod_engine.core.errors import ValidationExecutionError
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import (
    MISSING_REQUIRED_DOCUMENT,
    Check,
    ChecklistSection,
    CheckStatus,
    PalletScenario,
    Peculiarity,
    SkippedSection,
    ValidationResult,
    aggregate_status,
)
from pod_engine.sections.base import BaseSection, ValidationContext, check, missing_documents_reason
from pod_engine.sections.completeness import DocumentCompletenessSection
from pod_engine.sections.cross_document import CrossDocumentSection
from pod_engine.sections.invoice import InvoiceValidationSection
from pod_engine.sections.pallet import PalletValidationSection
from pod_engine.sections.ship_document import ShipDocumentSection
from pod_engine.services.marks import StampType, has_stamp

logger = logging.getLogger("pod_engine.validation")

DEFAULT_SECTIONS: tuple[type[BaseSection], ...] = (
    DocumentCompletenessSection,
    PalletValidationSection,
    ShipDocumentSection,
    InvoiceValidationSection,
    CrossDocumentSection,
)


def detect_pallet_scenario(configured: PalletScenario, documents: list[Document]) -> PalletScenario:
    """Resolve AUTO_DETECT from the documents; explicit scenarios pass through."""
    if configured != PalletScenario.AUTO_DETECT:
        return configured
    if any(doc.detected_type in PALLET_DOCUMENT_TYPES for doc in documents):
        return PalletScenario.WITH_PALLETS
    if any(has_stamp(doc.raw_text, StampType.PALLET) for doc in documents):
        return PalletScenario.WITH_PALLETS
    return PalletScenario.WITHOUT_PALLETS


def required_types(rules: ValidationRuleSet, scenario: PalletScenario) -> list[DocumentType]:
    completeness = rules.document_completeness
    required = []
    if scenario == PalletScenario.WITH_PALLETS:
        if completeness.require_pallet_notification_letter:
            required.append(DocumentType.PALLET_NOTIFICATION_LETTER)
        if completeness.require_loscam_document:
            required.append(DocumentType.LOSCAM_DOCUMENT)
        if completeness.require_customer_pallet_receiving:
            required.append(DocumentType.CUSTOMER_PALLET_RECEIVING)
    if completeness.require_ship_document:
        required.append(DocumentType.SHIP_DOCUMENT)
    if completeness.require_invoice:
        required.append(DocumentType.INVOICE)
    if completeness.require_rar:
        required.append(DocumentType.RAR)
    return required


class BaseValidator:
    """Runs the checklist sections for one client's rule set.

    Subclasses must set `name` as a class variable (str). The rule set is
    fixed at construction; `validate` keeps no state between calls.
    """

    name: str
    sections: tuple[type[BaseSection], ...] = DEFAULT_SECTIONS

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not getattr(cls, 'name', None) and 'Abstract' not in cls.__name__:
            raise TypeError(f"{cls.__name__} must define a 'name' class variable")

    def __init__(self, rules: ValidationRuleSet):
        self.rules = rules
        self._sections = [section() for section in self.sections]

    @opik.track(name="validate_delivery")
    def validate(self, delivery: Delivery, documents: list[Document]) -> ValidationResult:
        ctx = self.build_context(delivery, documents)

        checklist: list[ChecklistSection] = []
        skipped: list[SkippedSection] = []
        blocked: dict[DocumentType, list[str]] = {}
        for section in self._sections:
            if not section.is_enabled(self.rules):
                continue
            reason = section.skip_reason(ctx)
            if reason is not None:
                skipped.append(SkippedSection(section=section.name, reason=reason))
                missing = section.missing_requirements(ctx)
                if missing and reason == missing_documents_reason(missing):
                    for doc_type in missing:
                        blocked.setdefault(doc_type, []).append(section.name)
                continue
            try:
                checks = section.evaluate(ctx)
            except Exception as e:
                raise ValidationExecutionError(section.name, e) from e
            checklist.append(ChecklistSection(section=section.name, checks=checks))

        # Without a completeness section the missing documents would otherwise go unreported
        if blocked and not self.reports_completeness():
            checklist.insert(0, ChecklistSection(
                section=DocumentCompletenessSection.name,
                checks=[self.blocked_sections_check(blocked)],
            ))

        status = aggregate_status(s.status for s in checklist)
        peculiarities = [
            Peculiarity(
                type=c.peculiarity_type or s.section.upper(),
                description=c.message,
                section=s.section,
                check=c.name,
                status=c.status,
            )
            for s in checklist
            for c in s.checks
            if c.status != CheckStatus.PASSED
        ]

        logger.info(
            f"Delivery {delivery.id} validated by {self.name}: status={status.value}, "
            f"peculiarities={len(peculiarities)}, skipped={len(skipped)}"
        )
        return ValidationResult(
            status=status,
            message=self.summarize(status, peculiarities),
            checklist=checklist,
            peculiarities=peculiarities,
            skipped_sections=skipped,
            pallet_scenario=ctx.scenario,
            validator=self.name,
            validated_at=utcnow(),
        )

    def build_context(self, delivery: Delivery, documents: list[Document]) -> ValidationContext:
        scenario = detect_pallet_scenario(self.rules.document_completeness.pallet_scenario, documents)
        resolved: dict[DocumentType, Document] = {}
        for doc in documents:
            doc_type = doc.detected_type
            if doc_type != DocumentType.UNKNOWN and doc_type not in resolved:
                resolved[doc_type] = doc
        return ValidationContext(
            delivery=delivery,
            documents=documents,
            rules=self.rules,
            scenario=scenario,
            required_types=required_types(self.rules, scenario),
            resolved=resolved,
        )

    def reports_completeness(self) -> bool:
        return any(
            isinstance(section, DocumentCompletenessSection) and section.is_enabled(self.rules)
            for section in self._sections
        )

    @staticmethod
    def blocked_sections_check(blocked: dict[DocumentType, list[str]]) -> Check:
        """One FAILED check naming the missing documents and the sections they kept from running."""
        sections = list(dict.fromkeys(name for names in blocked.values() for name in names))
        types = [t.value for t in blocked]
        return check(
            "Documents for enabled sections present", CheckStatus.FAILED,
            f"Missing required document: {', '.join(types)} (needed by {', '.join(sections)})",
            MISSING_REQUIRED_DOCUMENT,
            missing_types=types,
            blocked_sections=sections,
        )

    @staticmethod
    def summarize(status: CheckStatus, peculiarities: list[Peculiarity]) -> str:
        if status == CheckStatus.PASSED:
            return "All checks passed"
        dominant = [p for p in peculiarities if p.status == status]
        head = dominant[0].description
        more = len(dominant) - 1
        label = "failed" if status == CheckStatus.FAILED else "warning"
        return f"{head} (+{more} more {label})" if more else head
