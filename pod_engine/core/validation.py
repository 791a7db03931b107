from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CheckStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    WARNING = "WARNING"


class PalletScenario(str, Enum):
    WITH_PALLETS = "WITH_PALLETS"
    WITHOUT_PALLETS = "WITHOUT_PALLETS"
    AUTO_DETECT = "AUTO_DETECT"


# Peculiarity types
MISSING_REQUIRED_DOCUMENT = "MISSING_REQUIRED_DOCUMENT"
DOCUMENT_TYPE_UNKNOWN = "DOCUMENT_TYPE_UNKNOWN"
LOW_CONFIDENCE = "LOW_CONFIDENCE"
INFERRED_DOCUMENT_TYPE = "INFERRED_DOCUMENT_TYPE"
MISSING_STAMP = "MISSING_STAMP"
MISSING_SIGNATURE = "MISSING_SIGNATURE"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
FIELD_MISMATCH = "FIELD_MISMATCH"
FIELD_NOT_DETECTED = "FIELD_NOT_DETECTED"
CROSS_DOCUMENT_MISMATCH = "CROSS_DOCUMENT_MISMATCH"


class Check(BaseModel):
    name: str
    status: CheckStatus
    message: str
    details: dict[str, Any] | None = None
    peculiarity_type: str | None = None


class ChecklistSection(BaseModel):
    section: str
    checks: list[Check] = Field(default_factory=list)

    @property
    def status(self) -> CheckStatus:
        return aggregate_status(c.status for c in self.checks)


class Peculiarity(BaseModel):
    """A non-PASSED check surfaced for operator triage."""
    type: str
    description: str
    section: str
    check: str
    status: CheckStatus


class SkippedSection(BaseModel):
    section: str
    reason: str


class ValidationResult(BaseModel):
    status: CheckStatus
    message: str
    checklist: list[ChecklistSection] = Field(default_factory=list)
    peculiarities: list[Peculiarity] = Field(default_factory=list)
    skipped_sections: list[SkippedSection] = Field(default_factory=list)
    pallet_scenario: PalletScenario
    validator: str
    validated_at: datetime

    def section(self, name: str) -> ChecklistSection | None:
        for section in self.checklist:
            if section.section == name:
                return section
        return None


def aggregate_status(statuses) -> CheckStatus:
    """FAILED if any FAILED, else WARNING if any WARNING, else PASSED."""
    seen = set(statuses)
    if CheckStatus.FAILED in seen:
        return CheckStatus.FAILED
    if CheckStatus.WARNING in seen:
        return CheckStatus.WARNING
    return CheckStatus.PASSED
