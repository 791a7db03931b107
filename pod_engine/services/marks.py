"""Text-based stamp and signature detection on OCR output."""
import re
from enum import Enum


class StampType(str, Enum):
    DISPATCH = "DISPATCH"
    NO_PALLET = "NO_PALLET"
    PALLET = "PALLET"
    WAREHOUSE = "WAREHOUSE"
    LOSCAM = "LOSCAM"
    SECURITY = "SECURITY"


class SignatureType(str, Enum):
    DRIVER = "DRIVER"
    RECEIVER = "RECEIVER"
    CUSTOMER = "CUSTOMER"
    SECURITY = "SECURITY"
    WAREHOUSE_STAFF = "WAREHOUSE_STAFF"
    CARRIER = "CARRIER"
    STORE_MANAGER = "STORE_MANAGER"


STAMP_PATTERNS: dict[StampType, re.Pattern] = {
    StampType.DISPATCH: re.compile(r"dispatch(?:ed)?(?:\s*stamp)?|shipment\s*document", re.IGNORECASE),
    StampType.NO_PALLET: re.compile(r"no\s*pallets?", re.IGNORECASE),
    StampType.WAREHOUSE: re.compile(r"warehouse(?:\s*stamp)?", re.IGNORECASE),
    StampType.LOSCAM: re.compile(r"loscam", re.IGNORECASE),
    StampType.SECURITY: re.compile(r"security(?:\s*stamp)?", re.IGNORECASE),
}

# Group 1 is set when the mention is a "no pallet" one
_PALLET_MENTION = re.compile(r"(no\s*)?pallets?", re.IGNORECASE)

SIGNATURE_PATTERNS: dict[SignatureType, list[re.Pattern]] = {
    SignatureType.DRIVER: [
        re.compile(r"driver\s*sign", re.IGNORECASE),
        re.compile(r"signed\s*by\s*driver", re.IGNORECASE),
        re.compile(r"sent\s*by", re.IGNORECASE),
        re.compile(r"service\s*provider", re.IGNORECASE),
    ],
    SignatureType.RECEIVER: [
        re.compile(r"receiver\s*sign", re.IGNORECASE),
        re.compile(r"received\s*by", re.IGNORECASE),
        re.compile(r"recipient\s*signature", re.IGNORECASE),
    ],
    SignatureType.CUSTOMER: [
        re.compile(r"customer'?s?\s*sign", re.IGNORECASE),
        re.compile(r"signed\s*by\s*customer", re.IGNORECASE),
    ],
    SignatureType.SECURITY: [
        re.compile(r"security\s*sign", re.IGNORECASE),
        re.compile(r"signed\s*by\s*security", re.IGNORECASE),
        re.compile(r"guard\s*on\s*duty", re.IGNORECASE),
        re.compile(r"guard\s*signature", re.IGNORECASE),
    ],
    SignatureType.WAREHOUSE_STAFF: [
        re.compile(r"warehouse\s*(?:staff\s*)?sign", re.IGNORECASE),
        re.compile(r"authorized\s*personnel", re.IGNORECASE),
    ],
    SignatureType.CARRIER: [
        re.compile(r"carrier\s*sign", re.IGNORECASE),
        re.compile(r"signed\s*by\s*carrier", re.IGNORECASE),
    ],
    SignatureType.STORE_MANAGER: [
        re.compile(r"(?:store\s*)?manager\s*sign", re.IGNORECASE),
    ],
}


def detect_stamps(text: str) -> set[StampType]:
    found = {stamp for stamp, pattern in STAMP_PATTERNS.items() if pattern.search(text)}
    if any(match.group(1) is None for match in _PALLET_MENTION.finditer(text)):
        found.add(StampType.PALLET)
    return found


def detect_signatures(text: str) -> set[SignatureType]:
    return {
        sig for sig, patterns in SIGNATURE_PATTERNS.items()
        if any(p.search(text) for p in patterns)
    }


def has_stamp(text: str, stamp: StampType) -> bool:
    return stamp in detect_stamps(text)
