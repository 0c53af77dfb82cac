"""
Tiered Price Estimator

Average PSF over rolling 3/6/12-month windows at up to four specificity
tiers, and the selection of a single best estimate.

Tiers (increasing specificity):
1. Project average - all transactions
2. Size match      - |area - target| < 50 sqft
3. Floor match     - floor midpoint inside the target band
4. Exact match     - size and floor together
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .models import Transaction, floor_in_range
from .stats import mean_psf, month_cutoff


# =============================================================================
# Configuration Constants
# =============================================================================

WINDOW_MONTHS = (3, 6, 12)

# Size tolerance for a size match (sqft, exclusive)
SIZE_MATCH_SQFT = 50


class TierLevel(Enum):
    """Comparable-set specificity, least specific first."""
    PROJECT_AVG = 1
    SIZE_MATCH = 2
    FLOOR_MATCH = 3
    EXACT_MATCH = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")


@dataclass
class TierWindow:
    """One tier/window cell: average PSF, count and newest-first sales."""
    avg_psf: int
    count: int
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.avg_psf > 0

    def median_date(self) -> Optional[str]:
        """Date of the middle transaction (newest-first order)."""
        if not self.transactions:
            return None
        return self.transactions[len(self.transactions) // 2].date

    def to_dict(self) -> dict:
        return {
            "avg_psf": self.avg_psf,
            "count": self.count,
            "transactions": [t.to_dict() for t in self.transactions],
        }


@dataclass
class Tier:
    """A tier with one TierWindow per rolling window length."""
    level: TierLevel
    description: str
    windows: Dict[int, TierWindow]

    @property
    def label(self) -> str:
        return self.level.label

    def to_dict(self) -> dict:
        return {
            "tier": self.level.value,
            "label": self.label,
            "description": self.description,
            "windows": {f"{m}M": w.to_dict() for m, w in self.windows.items()},
        }


@dataclass
class BestEstimate:
    """The selected tier/window; psf is the window's rounded average."""
    psf: int
    period: int  # window length in months
    tier: Tier
    window: TierWindow

    @property
    def period_label(self) -> str:
        return f"{self.period}M"

    def to_dict(self) -> dict:
        return {
            "psf": self.psf,
            "period": self.period_label,
            "tier": self.tier.level.value,
            "tier_label": self.tier.label,
            "count": self.window.count,
        }


def rolling_windows(
    transactions: Iterable[Transaction],
    reference_date: date,
) -> Dict[int, List[Transaction]]:
    """
    Split transactions into 3, 6 and 12 month rolling windows.

    Each window includes the reference month, so a 3 month window spans
    exactly three calendar months.
    """
    transactions = list(transactions)
    return {
        months: [t for t in transactions if t.date >= month_cutoff(reference_date, months)]
        for months in WINDOW_MONTHS
    }


def build_tier_window(transactions: Iterable[Transaction]) -> TierWindow:
    """Average PSF (0 when empty), count and newest-first ordering."""
    transactions = list(transactions)
    if not transactions:
        return TierWindow(avg_psf=0, count=0, transactions=[])
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return TierWindow(
        avg_psf=mean_psf(t.psf for t in transactions),
        count=len(transactions),
        transactions=ordered,
    )


def build_tier(
    level: TierLevel,
    windows: Dict[int, List[Transaction]],
    predicate: Callable[[Transaction], bool],
    description: str = "",
) -> Tier:
    """Apply a filter predicate to every window."""
    return Tier(
        level=level,
        description=description,
        windows={
            months: build_tier_window(t for t in txs if predicate(t))
            for months, txs in windows.items()
        },
    )


def nearest_size(target_area: float, sizes: Sequence[float]) -> float:
    """Closest observed unit size to the target; the target if none known."""
    if not sizes:
        return target_area
    return min(sizes, key=lambda s: abs(s - target_area))


def size_matches(tx: Transaction, target_area: float, tolerance: float = SIZE_MATCH_SQFT) -> bool:
    return abs(tx.area - target_area) < tolerance


def build_tiers(
    transactions: Iterable[Transaction],
    reference_date: date,
    target_area: Optional[float] = None,
    target_floor: Optional[str] = None,
) -> List[Tier]:
    """
    Build every applicable tier, least specific first.

    Size and floor tiers are only built when the caller supplied the
    matching target attribute.
    """
    windows = rolling_windows(transactions, reference_date)
    has_size = bool(target_area) and target_area > 0

    tiers = [
        build_tier(TierLevel.PROJECT_AVG, windows, lambda t: True, "All sizes, all floors"),
    ]

    if has_size:
        tiers.append(build_tier(
            TierLevel.SIZE_MATCH,
            windows,
            lambda t: size_matches(t, target_area),
            f"{target_area:,.0f} sqft, any floor",
        ))

    if target_floor:
        tiers.append(build_tier(
            TierLevel.FLOOR_MATCH,
            windows,
            lambda t: floor_in_range(t.floor_mid, target_floor),
            f"Any size, floor {target_floor}",
        ))

    if target_floor and has_size:
        tiers.append(build_tier(
            TierLevel.EXACT_MATCH,
            windows,
            lambda t: size_matches(t, target_area) and floor_in_range(t.floor_mid, target_floor),
            f"{target_area:,.0f} sqft, floor {target_floor}",
        ))

    return tiers


def best_estimate(tiers: Sequence[Tier]) -> Optional[BestEstimate]:
    """
    Select the most specific tier with data.

    Tiers are searched most specific first; within a tier the 3 month
    window is preferred, then 6, then 12. Returns None when no tier has
    any data.
    """
    for tier in sorted(tiers, key=lambda t: t.level.value, reverse=True):
        for months in WINDOW_MONTHS:
            window = tier.windows.get(months)
            if window is not None and window.has_data:
                return BestEstimate(psf=window.avg_psf, period=months, tier=tier, window=window)
    return None
