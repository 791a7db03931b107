"""Regex field extraction from raw OCR text.

Used when a document record carries no upstream-extracted value for a field.
"""
import re

from pod_engine.core.document import Document, LineItem

PO_NUMBER_PATTERNS = [
    re.compile(r"\bP\.?O\.?\s*(?:Number|No\.?|#)\s*:?\s*([A-Z0-9\-]*\d[A-Z0-9\-]*)", re.IGNORECASE),
    re.compile(r"Purchase\s*Order\s*(?:(?:Number|No\.?|#)\s*:?|:)\s*([A-Z0-9\-]*\d[A-Z0-9\-]*)", re.IGNORECASE),
    re.compile(r"\bPO\s*:\s*([A-Z0-9\-]*\d[A-Z0-9\-]*)", re.IGNORECASE),
]

TOTAL_CASES_PATTERNS = [
    re.compile(r"total\s*cases?\s*:?\s*(\d{1,5}(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"total\s*qty\s*:?\s*(\d{1,5}(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"total\s*quantity\s*:?\s*(\d{1,5}(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"grand\s*total\s*:?\s*(\d{1,5}(?:\.\d+)?)", re.IGNORECASE),
]

TIME_OUT_PATTERNS = [
    re.compile(r"time[\s\-]?out\s*:?\s*(\d{1,2}:\d{2})", re.IGNORECASE),
    re.compile(r"time[\s\-]?out\s*:?\s*(\d{1,2}\s*(?:AM|PM))", re.IGNORECASE),
    re.compile(r"departure\s*time\s*:?\s*(\d{1,2}:\d{2})", re.IGNORECASE),
]

# "ITEM-001  Shampoo 200ml  12" -> code, description, quantity
LINE_ITEM_PATTERN = re.compile(
    r"^\s*([A-Z]{2,}[A-Z0-9]*-?\d+[A-Z0-9\-]*)\s+(.+?)\s+(\d{1,5})\s*(?:cs|cases?)?\s*$",
    re.IGNORECASE | re.MULTILINE,
)


def _first_match(patterns: list[re.Pattern], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_po_number(text: str) -> str | None:
    value = _first_match(PO_NUMBER_PATTERNS, text)
    return value.upper() if value else None


def extract_total_cases(text: str) -> float | None:
    value = _first_match(TOTAL_CASES_PATTERNS, text)
    return float(value) if value is not None else None


def extract_time_out(text: str) -> str | None:
    return _first_match(TIME_OUT_PATTERNS, text)


def extract_line_items(text: str) -> list[LineItem]:
    items = []
    for code, description, qty in LINE_ITEM_PATTERN.findall(text):
        items.append(LineItem(item_code=code.upper(), description=description.strip(), quantity=float(qty)))
    return items


def po_number_of(document: Document) -> str | None:
    if document.extracted and document.extracted.po_number:
        return document.extracted.po_number.strip().upper()
    return extract_po_number(document.raw_text)


def total_cases_of(document: Document) -> float | None:
    if document.extracted and document.extracted.total_cases is not None:
        return document.extracted.total_cases
    return extract_total_cases(document.raw_text)


def line_items_of(document: Document) -> list[LineItem]:
    if document.extracted and document.extracted.items is not None:
        return document.extracted.items
    return extract_line_items(document.raw_text)
