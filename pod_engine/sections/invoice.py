from pod_engine.core.document import DocumentType, LineItem
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import FIELD_MISMATCH, FIELD_NOT_DETECTED, Check, CheckStatus
from pod_engine.sections.base import BaseSection, ValidationContext, check
from pod_engine.services.extraction import line_items_of, po_number_of, total_cases_of


def variance_percent(value: float, reference: float) -> float:
    """Relative difference of value against reference, in percent."""
    if reference == 0:
        return 0.0 if value == 0 else 100.0
    return round(abs(value - reference) / abs(reference) * 100, 2)


def quantities_by_code(items: list[LineItem]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for item in items:
        totals[item.item_code] = totals.get(item.item_code, 0) + item.quantity
    return totals


class InvoiceValidationSection(BaseSection):
    """Invoice data against the RAR as reference document."""

    name = "invoice_validation"
    requires = (DocumentType.INVOICE, DocumentType.RAR)

    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        return rules.invoice_validation.enabled

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        rules = ctx.rules.invoice_validation
        invoice = ctx.get(DocumentType.INVOICE)
        rar = ctx.get(DocumentType.RAR)
        checks = []

        if "po_number" in rules.compare_fields and rules.require_po_match:
            checks.append(self._po_number(po_number_of(invoice), po_number_of(rar)))
        if "total_cases" in rules.compare_fields and rules.require_total_cases_match:
            checks.append(self._total_cases(
                total_cases_of(invoice), total_cases_of(rar), rules.allowed_variance_percent,
            ))
        if rules.require_item_level_match:
            checks.extend(self._items(line_items_of(invoice), line_items_of(rar), rules.allowed_variance_percent))

        return checks

    @staticmethod
    def _po_number(invoice_po: str | None, rar_po: str | None) -> Check:
        name = "Invoice PO number matches RAR PO number"
        if invoice_po is None or rar_po is None:
            return check(
                name, CheckStatus.WARNING, "po_number not clearly detected on invoice or RAR",
                FIELD_NOT_DETECTED, invoice=invoice_po, rar=rar_po,
            )
        if invoice_po == rar_po:
            return check(name, CheckStatus.PASSED, f"PO numbers match: {invoice_po}", invoice=invoice_po, rar=rar_po)
        return check(
            name, CheckStatus.FAILED, f"po_number mismatch: invoice {invoice_po}, RAR {rar_po}",
            FIELD_MISMATCH, field="po_number", invoice=invoice_po, rar=rar_po,
        )

    @staticmethod
    def _total_cases(invoice_total: float | None, rar_total: float | None, allowed: float) -> Check:
        name = "Total cases on invoice match total cases on RAR"
        if invoice_total is None or rar_total is None:
            return check(
                name, CheckStatus.WARNING, "total_cases not clearly detected on invoice or RAR",
                FIELD_NOT_DETECTED, invoice=invoice_total, rar=rar_total,
            )
        variance = variance_percent(invoice_total, rar_total)
        details = {"field": "total_cases", "invoice": invoice_total, "rar": rar_total, "variance_percent": variance}
        if variance <= allowed:
            return check(name, CheckStatus.PASSED, f"Total cases match: {invoice_total:g}", **details)
        return check(
            name, CheckStatus.FAILED,
            f"total_cases mismatch: invoice {invoice_total:g}, RAR {rar_total:g} "
            f"(variance {variance}% > allowed {allowed:g}%)",
            FIELD_MISMATCH, **details,
        )

    @staticmethod
    def _items(invoice_items: list[LineItem], rar_items: list[LineItem], allowed: float) -> list[Check]:
        if not invoice_items or not rar_items:
            return [check(
                "Line items match", CheckStatus.WARNING, "items not detected on invoice or RAR",
                FIELD_NOT_DETECTED, invoice_items=len(invoice_items), rar_items=len(rar_items),
            )]

        invoice_qty = quantities_by_code(invoice_items)
        rar_qty = quantities_by_code(rar_items)
        checks = []
        for code, qty in invoice_qty.items():
            if code not in rar_qty:
                checks.append(check(
                    f"Item {code} on RAR", CheckStatus.FAILED, f"items: {code} found on invoice but not on RAR",
                    FIELD_MISMATCH, field="items", item_code=code, invoice=qty, rar=None,
                ))
                continue
            variance = variance_percent(qty, rar_qty[code])
            if variance > allowed:
                checks.append(check(
                    f"Item {code} quantity", CheckStatus.FAILED,
                    f"items: {code} quantity mismatch, invoice {qty:g}, RAR {rar_qty[code]:g}",
                    FIELD_MISMATCH, field="items", item_code=code, invoice=qty, rar=rar_qty[code],
                    variance_percent=variance,
                ))
        for code, qty in rar_qty.items():
            if code not in invoice_qty:
                checks.append(check(
                    f"Item {code} on invoice", CheckStatus.FAILED, f"items: {code} found on RAR but not on invoice",
                    FIELD_MISMATCH, field="items", item_code=code, invoice=None, rar=qty,
                ))

        if not checks:
            checks.append(check(
                "Line items match", CheckStatus.PASSED, f"All {len(invoice_qty)} line items match",
            ))
        return checks
