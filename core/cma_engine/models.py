"""
Data models for the CMA valuation engine.

Defines the canonical sale record for a single project and the result
structures produced by the growth, floor-premium, tier and scoring stages.
All engine functions treat these as read-only values.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .stats import round_half_up


# Default floor bands offered for a condominium project (lowest first)
DEFAULT_FLOOR_BANDS = ("01-05", "06-10", "11-15", "16-20", "21-30", "31+")

# Bedroom inference thresholds (sqft upper bounds)
BEDROOM_AREA_LIMITS = ((550, "1"), (800, "2"), (1100, "3"), (1500, "4"))


class SaleType(Enum):
    """Sale type as reported by the transaction source."""
    NEW_SALE = "New Sale"
    SUB_SALE = "Sub Sale"
    RESALE = "Resale"


class TenureCategory(Enum):
    """Tenure category used for filtering and display."""
    FREEHOLD = "Freehold"
    NINE_NINE_NINE = "999-yr"
    LEASEHOLD = "Leasehold"


def floor_range_bounds(floor_range: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Parse a floor band string into inclusive (low, high) bounds.

    Accepts "06-10", "06 to 10" and open bands such as "31+".
    Returns None when the text cannot be parsed.
    """
    if not floor_range:
        return None
    text = floor_range.replace(" ", "").lower()
    if text.endswith("+"):
        try:
            return float(int(text[:-1])), math.inf
        except ValueError:
            return None
    sep = "to" if "to" in text else "-"
    parts = text.split(sep)
    if len(parts) != 2:
        return None
    try:
        lo, hi = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return float(min(lo, hi)), float(max(lo, hi))


def floor_range_midpoint(floor_range: Optional[str]) -> Optional[float]:
    """Numeric midpoint of a floor band; the lower bound for open bands."""
    bounds = floor_range_bounds(floor_range)
    if bounds is None:
        return None
    lo, hi = bounds
    if math.isinf(hi):
        return lo
    return (lo + hi) / 2


def floor_in_range(floor_mid: Optional[float], floor_range: str) -> bool:
    """Whether a floor midpoint falls inside a band."""
    if floor_mid is None:
        return False
    bounds = floor_range_bounds(floor_range)
    if bounds is None:
        return False
    return bounds[0] <= floor_mid <= bounds[1]


def infer_bedrooms(area_sqft: float) -> str:
    """Bedroom label inferred from unit size when the source has none."""
    for limit, beds in BEDROOM_AREA_LIMITS:
        if area_sqft < limit:
            return beds
    return "5"


@dataclass(frozen=True)
class Transaction:
    """
    A single historical sale inside one project.

    Created once at ingestion and never mutated. `psf` is derived from
    price / area when not supplied.
    """
    date: str  # "YYYY-MM"
    price: float
    area: float  # sqft
    psf: Optional[float] = None
    floor_range: Optional[str] = None
    floor_mid: Optional[float] = None
    sale_type: Optional[str] = None
    tenure: Optional[str] = None
    beds: Optional[str] = None
    project: str = ""

    def __post_init__(self):
        if self.psf is None:
            psf = round_half_up(self.price / self.area) if self.area > 0 else 0
            object.__setattr__(self, "psf", psf)
        if self.floor_mid is None and self.floor_range:
            object.__setattr__(self, "floor_mid", floor_range_midpoint(self.floor_range))

    @property
    def year(self) -> int:
        """Calendar year of the sale."""
        return int(self.date[:4])

    @property
    def month(self) -> int:
        """Calendar month (1-12) of the sale."""
        return int(self.date[5:7]) if len(self.date) >= 7 else 1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "date": self.date,
            "price": self.price,
            "area": self.area,
            "psf": self.psf,
            "floor_range": self.floor_range,
            "floor_mid": self.floor_mid,
            "year": self.year,
            "sale_type": self.sale_type,
            "tenure": self.tenure,
            "beds": self.beds,
        }


@dataclass
class FloorBand:
    """Average PSF of one floor band and its premium over the baseline band."""
    range: str
    psf: int
    premium: float
    count: int
    thin: bool

    def to_dict(self) -> dict:
        return {
            "range": self.range,
            "psf": self.psf,
            "premium": self.premium,
            "count": self.count,
            "thin": self.thin,
        }


@dataclass
class AnnualAverage:
    """One year of a bucketed CAGR sequence; avg is None for empty years."""
    year: int
    avg: Optional[int]
    n: int

    def to_dict(self) -> dict:
        return {"year": self.year, "avg": self.avg, "n": self.n}


@dataclass
class CagrResult:
    """
    Bucketed CAGR between two boundary years.

    low_conf is set whenever either boundary year has fewer than
    three transactions.
    """
    start_avg: Optional[int]
    end_avg: Optional[int]
    start_n: int
    end_n: int
    cagr: Optional[float]
    low_conf: bool
    annual_avg: List[AnnualAverage] = field(default_factory=list)
    total_n: int = 0
    start_year: Optional[int] = None
    end_year: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "start_avg": self.start_avg,
            "end_avg": self.end_avg,
            "start_n": self.start_n,
            "end_n": self.end_n,
            "cagr": self.cagr,
            "low_conf": self.low_conf,
            "annual_avg": [a.to_dict() for a in self.annual_avg],
            "total_n": self.total_n,
            "start_year": self.start_year,
            "end_year": self.end_year,
        }


@dataclass
class ProjectionResult:
    """A PSF projected forward to the as-of month."""
    adjusted_psf: float
    months_elapsed: int
    rate: Optional[float]

    def to_dict(self) -> dict:
        return {
            "adjusted_psf": self.adjusted_psf,
            "months_elapsed": self.months_elapsed,
            "rate": self.rate,
        }


@dataclass
class ScoredTransaction:
    """A transaction with its CMA weight and adjusted PSF."""
    transaction: Transaction
    weight: float
    adjusted_psf: int
    months_ago: int
    size_diff: float
    floor_diff: Optional[float]
    recency_weight: float
    size_weight: float
    floor_weight: float
    floor_targeted: bool = False

    def to_dict(self) -> dict:
        data = self.transaction.to_dict()
        data.update({
            "weight": self.weight,
            "adjusted_psf": self.adjusted_psf,
            "months_ago": self.months_ago,
            "size_diff": self.size_diff,
            "floor_diff": self.floor_diff,
            "recency_weight": self.recency_weight,
            "size_weight": self.size_weight,
            "floor_weight": self.floor_weight,
        })
        return data


@dataclass
class ValuationEstimate:
    """
    Weighted CMA estimate for one target unit.

    Produced fresh per query; low/high are one weighted standard
    deviation either side of the weighted average.
    """
    weighted_avg_psf: int
    low_psf: int
    high_psf: int
    std_dev: int
    confidence: int
    total_comparables: int
    top_comparables: List[ScoredTransaction] = field(default_factory=list)
    recent_6mo: int = 0
    recent_12mo: int = 0
    size_matches: int = 0
    floor_matches: Optional[int] = None
    cagr: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "weighted_avg_psf": self.weighted_avg_psf,
            "low_psf": self.low_psf,
            "high_psf": self.high_psf,
            "std_dev": self.std_dev,
            "confidence": self.confidence,
            "total_comparables": self.total_comparables,
            "top_comparables": [c.to_dict() for c in self.top_comparables],
            "recent_6mo": self.recent_6mo,
            "recent_12mo": self.recent_12mo,
            "size_matches": self.size_matches,
            "floor_matches": self.floor_matches,
            "cagr": self.cagr,
        }
