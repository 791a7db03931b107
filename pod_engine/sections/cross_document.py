from pod_engine.core.document import DocumentType
from pod_engine.core.rules import ValidationRuleSet
from pod_engine.core.validation import CROSS_DOCUMENT_MISMATCH, Check, CheckStatus
from pod_engine.sections.base import BaseSection, ValidationContext, check
from pod_engine.sections.invoice import quantities_by_code
from pod_engine.services.extraction import line_items_of, po_number_of, total_cases_of


class CrossDocumentSection(BaseSection):
    """Reconciles values read independently off the invoice and the RAR."""

    name = "cross_document_validation"
    requires = (DocumentType.INVOICE, DocumentType.RAR)

    def is_enabled(self, rules: ValidationRuleSet) -> bool:
        return rules.cross_document_validation.enabled

    def skip_reason(self, ctx: ValidationContext) -> str | None:
        if not ctx.rules.cross_document_validation.validate_invoice_rar:
            return "Invoice/RAR reconciliation disabled"
        return super().skip_reason(ctx)

    def evaluate(self, ctx: ValidationContext) -> list[Check]:
        rules = ctx.rules.cross_document_validation
        invoice = ctx.get(DocumentType.INVOICE)
        rar = ctx.get(DocumentType.RAR)
        discrepancies = self.discrepancies(invoice, rar)

        count = len(discrepancies)
        if count == 0:
            status = CheckStatus.PASSED
        elif rules.strict_mode or count > rules.allowed_discrepancy_count:
            status = CheckStatus.FAILED
        else:
            status = CheckStatus.WARNING

        checks = [
            check(f"Invoice/RAR {field}", status, message, CROSS_DOCUMENT_MISMATCH, field=field)
            for field, message in discrepancies
        ]
        checks.append(check(
            "Invoice/RAR discrepancy count", status,
            f"{count} discrepancies between invoice and RAR (allowed {rules.allowed_discrepancy_count}"
            f"{', strict mode' if rules.strict_mode else ''})",
            CROSS_DOCUMENT_MISMATCH,
            discrepancy_count=count,
            allowed_discrepancy_count=rules.allowed_discrepancy_count,
            strict_mode=rules.strict_mode,
        ))
        return checks

    @staticmethod
    def discrepancies(invoice, rar) -> list[tuple[str, str]]:
        found = []

        invoice_po, rar_po = po_number_of(invoice), po_number_of(rar)
        if invoice_po and rar_po and invoice_po != rar_po:
            found.append(("po_number", f"po_number differs: invoice {invoice_po}, RAR {rar_po}"))

        invoice_total, rar_total = total_cases_of(invoice), total_cases_of(rar)
        if invoice_total is not None and rar_total is not None and invoice_total != rar_total:
            found.append(("total_cases", f"total_cases differs: invoice {invoice_total:g}, RAR {rar_total:g}"))

        invoice_items = quantities_by_code(line_items_of(invoice))
        rar_items = quantities_by_code(line_items_of(rar))
        if invoice_items and rar_items:
            for code in sorted(set(invoice_items) | set(rar_items)):
                if code not in rar_items:
                    found.append(("items", f"items: {code} on invoice but not on RAR"))
                elif code not in invoice_items:
                    found.append(("items", f"items: {code} on RAR but not on invoice"))
                elif invoice_items[code] != rar_items[code]:
                    found.append((
                        "items",
                        f"items: {code} invoice {invoice_items[code]:g}, RAR {rar_items[code]:g}",
                    ))
        return found
