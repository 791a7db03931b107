from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pod_engine.core.delivery import Delivery
from pod_engine.core.document import Document, DocumentType
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import Check, CheckStatus, PalletScenario
from pod_engine.services.marks import SignatureType


@dataclass
class ValidationContext:
    """Everything a section may read during one validation run."""
    delivery: Delivery
    documents: list[Document]
    rules: ValidationRuleSet
    scenario: PalletScenario
    required_types: list[DocumentType]
    # Document chosen for each type; validators may fill a role by inference
    resolved: dict[DocumentType, Document] = field(default_factory=dict)
    # Types filled by inference: their failed checks are reported as warnings
    lenient_types: set[DocumentType] = field(default_factory=set)
    customer_signature_types: tuple[SignatureType, ...] = (SignatureType.CUSTOMER,)
    time_out_missing_status: CheckStatus = CheckStatus.FAILED

    def has(self, doc_type: DocumentType) -> bool:
        return doc_type in self.resolved

    def get(self, doc_type: DocumentType) -> Document | None:
        return self.resolved.get(doc_type)

    @property
    def missing_types(self) -> list[DocumentType]:
        return [t for t in self.required_types if not self.has(t)]


class BaseSection(ABC):
    """One independently gated checklist section.

    Subclasses must set `name` as a class variable (str) and implement
    `is_enabled` and `evaluate`. `requires` lists the document types the
    section cannot run without.
    """

    name: str
    requires: tuple[DocumentType, ...] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not getattr(cls, 'name', None) and 'Abstract' not in cls.__name__:
            raise TypeError(f"{cls.__name__} must define a 'name' class variable")

    @abstractmethod
    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        ...

    def missing_requirements(self, ctx: ValidationContext) -> list[DocumentType]:
        return [t for t in self.requires if not ctx.has(t)]

    def skip_reason(self, ctx: ValidationContext) -> str | None:
        """Why the section cannot run for this delivery, or None when it can."""
        missing = self.missing_requirements(ctx)
        if missing:
            return missing_documents_reason(missing)
        return None

    @abstractmethod
    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        ...


def missing_documents_reason(missing: list[DocumentType]) -> str:
    return f"Required document missing: {', '.join(t.value for t in missing)}"


def check(
    name: str,
    status: CheckStatus,
    message: str,
    peculiarity_type: str | None = None,
    **details: Any,
) -> Check:
    return Check(
        name=name,
        status=status,
        message=message,
        details=details or None,
        peculiarity_type=peculiarity_type if status != CheckStatus.PASSED else None,
    )


def requirement(
    ctx: ValidationContext,
    doc_type: DocumentType,
    ok: bool,
    name: str,
    passed_message: str,
    failed_message: str,
    peculiarity_type: str,
    **details: Any,
) -> Check:
    """PASSED when ok, else FAILED (WARNING when the document's role was inferred)."""
    if ok:
        return check(name, CheckStatus.PASSED, passed_message, **details)
    if doc_type in ctx.lenient_types:
        return check(
            name, CheckStatus.WARNING,
            f"{failed_message} (document type inferred, please review manually)",
            peculiarity_type, **details,
        )
    return check(name, CheckStatus.FAILED, failed_message, peculiarity_type, **details)
