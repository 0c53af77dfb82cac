"""
Transaction Schema Normalisers

Field-level conversions from raw URA-style caveat records to the
canonical Transaction fields. Records that cannot be normalised are
described by a RejectionRecord rather than raising.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Final, Optional, Tuple

from core.cma_engine.models import SaleType, TenureCategory
from core.cma_engine.stats import round_half_up


SQM_TO_SQFT: Final = 10.7639

# Canonical sale month, optionally followed by a day or timestamp
MONTH_PATTERN: Final = re.compile(r"^(\d{4}-(?:0[1-9]|1[0-2]))(?:$|-)")

# Landed properties carry no floor range; treat them as low floor
LANDED_FLOOR_BAND: Final = "01-05"
LANDED_FLOOR_MID: Final = 1.0

SALE_TYPE_CODES: Final[dict[str, SaleType]] = {
    "1": SaleType.NEW_SALE,
    "2": SaleType.SUB_SALE,
    "3": SaleType.RESALE,
}


def normalise_contract_date(contract_date: Optional[str]) -> Optional[str]:
    """
    Convert a URA contract date "MMYY" to "YYYY-MM".

    Returns None for missing or malformed values.
    """
    if not contract_date:
        return None
    text = str(contract_date).strip()
    if len(text) < 4 or not text[:4].isdigit():
        return None
    month = int(text[:2])
    if month < 1 or month > 12:
        return None
    return f"{2000 + int(text[2:4])}-{text[:2]}"


def normalise_month(value: Optional[str]) -> Optional[str]:
    """
    Canonical "YYYY-MM" from a "YYYY-MM" or ISO "YYYY-MM-DD..." value.

    Returns None for missing or malformed values.
    """
    if not value:
        return None
    match = MONTH_PATTERN.match(str(value).strip())
    if match is None:
        return None
    return match.group(1)


def normalise_area_sqft(area_sqm) -> int:
    """Floor area in sqm (string or number) to whole sqft; 0 if invalid."""
    try:
        sqm = float(area_sqm)
    except (TypeError, ValueError):
        return 0
    if sqm <= 0:
        return 0
    return round_half_up(sqm * SQM_TO_SQFT)


def normalise_floor_range(floor_range: Optional[str]) -> Tuple[str, Optional[float]]:
    """
    Normalise a source floor range to ("LL-HH", midpoint).

    Handles "01-05", "01 to 05", single floors, and "-" / empty for
    landed properties.
    """
    text = (floor_range or "").replace(" ", "")
    if text in ("", "-"):
        return LANDED_FLOOR_BAND, LANDED_FLOOR_MID

    if "to" in text or "-" in text:
        parts = text.split("to") if "to" in text else text.split("-")
        if len(parts) == 2 and parts[0].isdigit() and parts[1].isdigit():
            lo, hi = int(parts[0]), int(parts[1])
            return f"{parts[0].zfill(2)}-{parts[1].zfill(2)}", (lo + hi) / 2
        return text, None

    if text.isdigit():
        return text, float(int(text))

    return text, None


def normalise_sale_type(type_of_sale: Optional[str]) -> str:
    """URA typeOfSale code to a sale type label (default Resale)."""
    return SALE_TYPE_CODES.get(str(type_of_sale or ""), SaleType.RESALE).value


def normalise_tenure(tenure: Optional[str]) -> str:
    """Free-text tenure to Freehold / 999-yr / Leasehold."""
    if not tenure:
        return TenureCategory.LEASEHOLD.value
    text = tenure.lower()
    if "freehold" in text:
        return TenureCategory.FREEHOLD.value
    if "999" in text:
        return TenureCategory.NINE_NINE_NINE.value
    return TenureCategory.LEASEHOLD.value


# =============================================================================
# Rejection Codes
# =============================================================================

REJECTION_CODES: Final[dict[str, str]] = {
    "INVALID_DATE": "Contract date missing or not in MMYY format",
    "INVALID_AREA": "Floor area missing or not a positive number",
    "INVALID_PRICE": "Price missing or not a positive number",
}


@dataclass(frozen=True)
class RejectionRecord:
    """
    Record of a transaction that failed normalisation.

    Used for audit trail and data quality monitoring.
    """

    source_id: str
    record_index: int
    rejection_code: str
    rejection_reason: str
    raw_data_hash: str
    rejected_at: datetime

    @classmethod
    def create(
        cls,
        source_id: str,
        record_index: int,
        rejection_code: str,
        raw_data: Optional[dict] = None,
    ) -> "RejectionRecord":
        """Create a rejection record with automatic hash and timestamp."""
        reason = REJECTION_CODES.get(rejection_code, f"Unknown code: {rejection_code}")

        if raw_data:
            data_str = str(sorted((k, str(v)) for k, v in raw_data.items()))
            raw_hash = hashlib.sha256(data_str.encode()).hexdigest()[:16]
        else:
            raw_hash = "no_data"

        return cls(
            source_id=source_id,
            record_index=record_index,
            rejection_code=rejection_code,
            rejection_reason=reason,
            raw_data_hash=raw_hash,
            rejected_at=datetime.now(timezone.utc),
        )
