"""
Numeric helpers shared by the engine stages.

Rounding is half-up so that estimates match what clients see on
printed reports, not banker's rounding.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round half away from zero on the decimal value as written.

    round_half_up(1.005, 2) is 1.01, unlike round() on the binary float.
    Returns an int when decimals is 0.
    """
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if decimals == 0:
        return int(rounded)
    return float(rounded)


def mean_psf(values: Iterable[float]) -> Optional[int]:
    """Rounded mean, or None for an empty input."""
    values = list(values)
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def parse_month(month: str) -> tuple[int, int]:
    """Split a "YYYY-MM" string into (year, month)."""
    parts = month.split("-")
    year = int(parts[0])
    mon = int(parts[1]) if len(parts) > 1 and parts[1] else 1
    return year, mon


def months_elapsed(month: str, as_of: date) -> int:
    """
    Whole months between the 15th of a "YYYY-MM" month and as_of.

    Floored at zero so future-dated records never produce negative ages.
    """
    year, mon = parse_month(month)
    return max(0, (as_of.year - year) * 12 + (as_of.month - mon))


def month_cutoff(as_of: date, months: int) -> str:
    """
    First month of a rolling window of `months` calendar months ending
    at as_of's month, as "YYYY-MM".
    """
    index = as_of.year * 12 + (as_of.month - 1) - (months - 1)
    return f"{index // 12:04d}-{index % 12 + 1:02d}"
