"""
Reference-Transaction Projector

Projects one user-selected historical sale to the as-of month for a
"then vs. now" comparison.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from .models import Transaction
from .projection import project_forward
from .stats import round_half_up


class ReferenceStatus(Enum):
    """
    Outcome of a reference projection.

    ADJUSTED: rate available and time elapsed
    INSUFFICIENT_DATA: time elapsed but no growth rate
    CURRENT: same month, no adjustment needed
    """
    ADJUSTED = "adjusted"
    INSUFFICIENT_DATA = "insufficient_data"
    CURRENT = "current"


@dataclass
class ReferenceProjection:
    """A historical sale and its value projected to today."""
    transaction: Transaction
    status: ReferenceStatus
    original_psf: float
    adjusted_psf: float
    months_elapsed: int
    rate: Optional[float]

    @property
    def delta_psf(self) -> float:
        return self.adjusted_psf - self.original_psf

    @property
    def delta_percent(self) -> Optional[float]:
        if not self.original_psf:
            return None
        return round_half_up((self.adjusted_psf / self.original_psf - 1) * 100, 1)

    @property
    def original_value(self) -> float:
        return self.transaction.price

    @property
    def adjusted_value(self) -> int:
        """Projected total price for the same area."""
        return round_half_up(self.adjusted_psf * self.transaction.area)

    def to_dict(self) -> dict:
        return {
            "date": self.transaction.date,
            "area": self.transaction.area,
            "floor": self.transaction.floor_range,
            "sale_type": self.transaction.sale_type,
            "status": self.status.value,
            "original_psf": self.original_psf,
            "adjusted_psf": self.adjusted_psf,
            "months_elapsed": self.months_elapsed,
            "rate": self.rate,
            "delta_psf": self.delta_psf,
            "delta_percent": self.delta_percent,
            "original_value": self.original_value,
            "adjusted_value": self.adjusted_value,
        }


def project_reference(
    tx: Transaction,
    project_cagr: Optional[float],
    as_of: date,
) -> ReferenceProjection:
    """Project a single reference transaction with the project CAGR."""
    projection = project_forward(tx.psf, tx.date, project_cagr, as_of)

    if projection.months_elapsed < 1:
        status = ReferenceStatus.CURRENT
    elif projection.rate is None:
        status = ReferenceStatus.INSUFFICIENT_DATA
    else:
        status = ReferenceStatus.ADJUSTED

    return ReferenceProjection(
        transaction=tx,
        status=status,
        original_psf=tx.psf,
        adjusted_psf=projection.adjusted_psf,
        months_elapsed=projection.months_elapsed,
        rate=projection.rate,
    )
