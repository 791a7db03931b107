"""Keyword weighting table for document type detection."""
from pydantic import BaseModel

from pod_engine.core.document import DocumentType


class KeywordSet(BaseModel):
    primary: list[str]
    secondary: list[str]
    primary_weight: float = 10.0
    secondary_weight: float = 2.0
    # Higher priority wins over a better-scoring type once both pass the threshold
    priority: int = 1


# Score that maps to 100% confidence
MAX_SCORE = 60.0

FUZZY_WEIGHT_FACTOR = 0.7
FUZZY_MIN_KEYWORD_LENGTH = 6

KEYWORDS: dict[DocumentType, KeywordSet] = {
    DocumentType.PALLET_NOTIFICATION_LETTER: KeywordSet(
        primary=["pallet notification", "notification letter", "pallet notification letter"],
        secondary=["warehouse stamp", "warehouse signature", "pallet", "notification"],
    ),
    DocumentType.LOSCAM_DOCUMENT: KeywordSet(
        primary=["loscam", "loscam document", "loscam philippines", "customer transaction"],
        secondary=[
            "pallet exchange", "pallet rental", "customer signature", "exchange",
            "docket no", "transaction date", "qty sent",
        ],
    ),
    DocumentType.CUSTOMER_PALLET_RECEIVING: KeywordSet(
        primary=[
            "customer pallet receiving", "pallet receiving", "receiving document",
            "plate number", "platc number",
            "received qty", "received quantity",
        ],
        secondary=[
            "received", "pallet receipt", "customer receipt",
            "returned qty", "returned quantity", "trucker",
            "loscam", "rppc", "invoice number",
        ],
    ),
    DocumentType.SHIP_DOCUMENT: KeywordSet(
        primary=["ship document", "shipping document", "dispatch", "shipment document", "shipment"],
        secondary=[
            "dispatch stamp", "time-out", "time out", "security", "carrier",
            "warehouse address", "gate", "driver", "customer name",
            "delivered", "dispatch date", "shipper", "consignee",
            "date and time", "release", "guard on duty",
            "stamp", "approved", "signature", "address", "remarks",
        ],
        secondary_weight=5.0,
    ),
    DocumentType.INVOICE: KeywordSet(
        primary=["invoice", "invoice no", "invoice number", "inv no"],
        secondary=["po number", "purchase order", "bill to", "invoice date", "total amount"],
    ),
    DocumentType.RAR: KeywordSet(
        primary=[
            "receiving acknowledgement receipt",
            "receiving acknowledgment receipt",
            "cfast receiving acknowledgement",
            "rar", "r.a.r", "r & a r", "r&ar",
            "receiving and acknowledgment",
            "receiving & acknowledgment",
            "receiving and acknowledgement",
            "receiving acknowledgment",
            "receiving acknowledgement",
            "acknowledgment receipt",
            "acknowledgement receipt",
            "r & a receipt",
            "receiving report",
            "goods received note",
            "delivery receipt",
        ],
        secondary=[
            "received", "acknowledged", "total cases",
            "goods received", "qty received", "quantity received",
            "receiver signature", "received by",
            "delivery confirmation", "confirmed delivery",
            "acceptance", "accepted by",
        ],
        secondary_weight=3.0,
        priority=2,
    ),
}
