"""Unit tests for regex field extraction."""
from pod_engine.core.document import ExtractedFields, LineItem
from pod_engine.services.extraction import (
    extract_line_items,
    extract_po_number,
    extract_time_out,
    extract_total_cases,
    line_items_of,
    po_number_of,
    total_cases_of,
)
from tests.mocks import INVOICE_TEXT, RAR_TEXT, SHIP_TEXT, make_document


class TestPoNumber:
    def test_po_number_label(self):
        assert extract_po_number(INVOICE_TEXT) == "PO-77812"

    def test_purchase_order_label(self):
        assert extract_po_number("Purchase Order No: 4500123") == "4500123"

    def test_po_colon(self):
        assert extract_po_number("PO: abc-991") == "ABC-991"

    def test_words_without_digits_ignored(self):
        assert extract_po_number("Purchase order copy attached") is None

    def test_missing(self):
        assert extract_po_number("nothing here") is None


class TestTotalCases:
    def test_total_cases(self):
        assert extract_total_cases(RAR_TEXT) == 120

    def test_total_qty(self):
        assert extract_total_cases("TOTAL QTY: 48") == 48

    def test_missing(self):
        assert extract_total_cases("Total Amount: 45,300.00") is None


class TestTimeOut:
    def test_clock_time(self):
        assert extract_time_out(SHIP_TEXT) == "14:30"

    def test_am_pm(self):
        assert extract_time_out("Time out 3 PM") == "3 PM"

    def test_missing(self):
        assert extract_time_out("Time-out: ____") is None


class TestLineItems:
    def test_parses_item_lines(self):
        text = "SKU-1001  Shampoo 200ml  60\nSKU-1002  Conditioner  12 cs\nTotal Cases: 72"
        items = extract_line_items(text)
        assert items == [
            LineItem(item_code="SKU-1001", description="Shampoo 200ml", quantity=60),
            LineItem(item_code="SKU-1002", description="Conditioner", quantity=12),
        ]

    def test_header_lines_ignored(self):
        assert extract_line_items(INVOICE_TEXT) == []


class TestDocumentAccessors:
    def test_extracted_fields_preferred(self):
        doc = make_document(
            "d1", text=INVOICE_TEXT,
            extracted=ExtractedFields(po_number=" po-1 ", total_cases=7, items=[]),
        )
        assert po_number_of(doc) == "PO-1"
        assert total_cases_of(doc) == 7
        assert line_items_of(doc) == []

    def test_falls_back_to_text(self):
        doc = make_document("d1", text=INVOICE_TEXT, extracted=ExtractedFields())
        assert po_number_of(doc) == "PO-77812"
        assert total_cases_of(doc) == 120
