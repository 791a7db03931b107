from pydantic import BaseModel, ConfigDict, Field, field_validator

from pod_engine.core.validation import PalletScenario


class _FrozenRules(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class DocumentCompletenessRules(_FrozenRules):
    enabled: bool = True
    require_pallet_notification_letter: bool = False
    require_loscam_document: bool = False
    require_customer_pallet_receiving: bool = False
    require_ship_document: bool = True
    require_invoice: bool = True
    require_rar: bool = True
    pallet_scenario: PalletScenario = PalletScenario.AUTO_DETECT
    flag_unknown_documents: bool = True
    low_confidence_threshold: float = Field(default=40, ge=0, le=100)


class PalletValidationRules(_FrozenRules):
    enabled: bool = False
    require_warehouse_stamp: bool = False
    require_warehouse_signature: bool = False
    require_customer_signature: bool = False
    require_driver_signature: bool = False
    require_loscam_stamp: bool = False


class ShipDocumentValidationRules(_FrozenRules):
    enabled: bool = True
    require_dispatch_stamp: bool = True
    require_pallet_stamp: bool = False
    require_no_pallet_stamp: bool = False
    require_security_signature: bool = True
    require_time_out_field: bool = False
    require_driver_signature: bool = False


COMPARE_FIELDS = ("po_number", "total_cases", "items")


class InvoiceValidationRules(_FrozenRules):
    enabled: bool = True
    require_po_match: bool = True
    require_total_cases_match: bool = True
    allowed_variance_percent: float = Field(default=0, ge=0, le=100)
    require_item_level_match: bool = False
    compare_fields: tuple[str, ...] = ("po_number", "total_cases")

    @field_validator("compare_fields")
    @classmethod
    def _known_fields(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [f for f in value if f not in COMPARE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown compare fields: {unknown}")
        return value


class CrossDocumentValidationRules(_FrozenRules):
    enabled: bool = True
    validate_invoice_rar: bool = True
    allowed_discrepancy_count: int = Field(default=0, ge=0)
    strict_mode: bool = True


class ValidationRuleSet(_FrozenRules):
    document_completeness: DocumentCompletenessRules = Field(default_factory=DocumentCompletenessRules)
    pallet_validation: PalletValidationRules = Field(default_factory=PalletValidationRules)
    ship_document_validation: ShipDocumentValidationRules = Field(default_factory=ShipDocumentValidationRules)
    invoice_validation: InvoiceValidationRules = Field(default_factory=InvoiceValidationRules)
    cross_document_validation: CrossDocumentValidationRules = Field(default_factory=CrossDocumentValidationRules)


class ClientRuleSet(_FrozenRules):
    """One client's entry in the rule-set file."""
    client_id: str
    client_name: str = ""
    description: str = ""
    validator: str = "checklist"
    is_active: bool = True
    rules: ValidationRuleSet = Field(default_factory=ValidationRuleSet)

    @field_validator("client_id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        return value.strip().upper()
