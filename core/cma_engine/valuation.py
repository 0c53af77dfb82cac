"""
CMA Scoring Engine

Implements:
- Per-transaction weights (recency, size similarity, floor similarity)
- Time and floor-premium adjustment of each comparable's PSF
- Weighted average PSF with a weighted standard deviation band
- 0-100 confidence score
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .floor_premium import floor_premiums, premium_for_floor
from .growth import bucketed_cagr
from .models import (
    DEFAULT_FLOOR_BANDS,
    FloorBand,
    ScoredTransaction,
    Transaction,
    ValuationEstimate,
    floor_range_midpoint,
)
from .stats import months_elapsed, round_half_up


# =============================================================================
# Configuration Constants
# =============================================================================

@dataclass(frozen=True)
class ScoringParameters:
    """
    Kernel widths and confidence weights for CMA scoring.

    Values are empirical tuning constants; override per engine.
    """
    # Recency: exp(-0.5 * months / scale)
    recency_scale_months: float = 18.0
    # Size similarity: Gaussian sigma in sqft
    size_sigma_sqft: float = 150.0
    # Floor similarity: Gaussian sigma in floors
    floor_sigma: float = 8.0
    # Floor weight when floor similarity cannot be assessed
    neutral_floor_weight: float = 0.5

    # Match thresholds used by the confidence score
    size_match_sqft: float = 50.0
    floor_match_floors: float = 4.0
    recent_months: int = 12

    # Sub-term caps
    recent_cap: int = 10
    size_cap: int = 5
    floor_cap: int = 5
    total_cap: int = 20

    # Confidence weights with a target floor (sum to 100)
    floor_recent_weight: float = 30.0
    floor_size_weight: float = 25.0
    floor_floor_weight: float = 20.0
    floor_total_weight: float = 25.0

    # Confidence weights without a target floor (sum to 100)
    recent_weight: float = 40.0
    size_weight: float = 30.0
    total_weight: float = 30.0

    top_comparables: int = 5
    min_comparables: int = 3


DEFAULT_PARAMETERS = ScoringParameters()


def recency_weight(months_ago: int, params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """Exponential decay by transaction age."""
    return math.exp(-0.5 * months_ago / params.recency_scale_months)


def size_weight(size_diff: float, params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """Gaussian similarity on floor area difference."""
    return math.exp(-0.5 * (size_diff / params.size_sigma_sqft) ** 2)


def floor_weight(floor_diff: Optional[float], params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """Gaussian similarity on floor difference; neutral when unknown."""
    if floor_diff is None:
        return params.neutral_floor_weight
    return math.exp(-0.5 * (floor_diff / params.floor_sigma) ** 2)


def score_transaction(
    tx: Transaction,
    target_area: float,
    target_floor_mid: Optional[float],
    projected_cagr: Optional[float],
    bands: Sequence[FloorBand],
    as_of: date,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> ScoredTransaction:
    """
    Weight one comparable and adjust its PSF to the target unit.

    weight = recency * size * floor

    The PSF is compounded forward by the project CAGR for its age, then
    shifted by the premium difference between the target's floor band and
    the comparable's band (only with a target floor and at least two
    priced bands).

    Args:
        tx: Historical transaction
        target_area: Target unit area (sqft)
        target_floor_mid: Midpoint of the target floor band, or None
        projected_cagr: Project CAGR in percent, or None
        bands: Floor premiums for the same transaction set
        as_of: Valuation date
        params: Scoring parameters

    Returns:
        ScoredTransaction
    """
    months_ago = months_elapsed(tx.date, as_of)
    size_diff = abs(tx.area - target_area)

    floor_targeted = target_floor_mid is not None
    floor_diff = None
    if floor_targeted and tx.floor_mid is not None:
        floor_diff = abs(tx.floor_mid - target_floor_mid)

    w_recency = recency_weight(months_ago, params)
    w_size = size_weight(size_diff, params)
    w_floor = floor_weight(floor_diff, params)

    adjusted = float(tx.psf)
    if months_ago > 0 and projected_cagr:
        adjusted *= (1 + projected_cagr / 100) ** (months_ago / 12)

    if floor_diff is not None and len(bands) > 1:
        differential = premium_for_floor(target_floor_mid, bands) - premium_for_floor(tx.floor_mid, bands)
        adjusted *= 1 + differential / 100

    return ScoredTransaction(
        transaction=tx,
        weight=w_recency * w_size * w_floor,
        adjusted_psf=round_half_up(adjusted),
        months_ago=months_ago,
        size_diff=size_diff,
        floor_diff=floor_diff,
        recency_weight=w_recency,
        size_weight=w_size,
        floor_weight=w_floor,
        floor_targeted=floor_targeted,
    )


def confidence_score(
    scored: Sequence[ScoredTransaction],
    floor_targeted: bool,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> int:
    """
    0-100 heuristic from comparable volume and relevance.

    Each factor is capped before weighting so that no single factor
    exceeds its share.
    """
    recent = sum(1 for s in scored if s.months_ago <= params.recent_months)
    sizes = sum(1 for s in scored if s.size_diff < params.size_match_sqft)
    total = len(scored)

    if floor_targeted:
        floors = sum(
            1 for s in scored
            if s.floor_diff is not None and s.floor_diff <= params.floor_match_floors
        )
        raw = (
            min(recent, params.recent_cap) / params.recent_cap * params.floor_recent_weight
            + min(sizes, params.size_cap) / params.size_cap * params.floor_size_weight
            + min(floors, params.floor_cap) / params.floor_cap * params.floor_floor_weight
            + min(total, params.total_cap) / params.total_cap * params.floor_total_weight
        )
    else:
        raw = (
            min(recent, params.recent_cap) / params.recent_cap * params.recent_weight
            + min(sizes, params.size_cap) / params.size_cap * params.size_weight
            + min(total, params.total_cap) / params.total_cap * params.total_weight
        )

    return max(0, min(100, round_half_up(raw)))


def weighted_valuation(
    scored: Sequence[ScoredTransaction],
    params: ScoringParameters = DEFAULT_PARAMETERS,
    cagr: Optional[float] = None,
) -> Optional[ValuationEstimate]:
    """
    Weighted-average PSF, uncertainty band and confidence.

    Returns None for an empty set or a zero total weight.
    """
    scored = list(scored)
    if not scored:
        return None

    total_weight = sum(s.weight for s in scored)
    if total_weight <= 0:
        return None

    avg = round_half_up(sum(s.adjusted_psf * s.weight for s in scored) / total_weight)
    variance = sum(s.weight * (s.adjusted_psf - avg) ** 2 for s in scored) / total_weight
    std_dev = round_half_up(math.sqrt(variance))

    floor_targeted = scored[0].floor_targeted
    floor_matches = None
    if floor_targeted:
        floor_matches = sum(
            1 for s in scored
            if s.floor_diff is not None and s.floor_diff <= params.floor_match_floors
        )

    top = sorted(scored, key=lambda s: s.weight, reverse=True)[:params.top_comparables]

    return ValuationEstimate(
        weighted_avg_psf=avg,
        low_psf=avg - std_dev,
        high_psf=avg + std_dev,
        std_dev=std_dev,
        confidence=confidence_score(scored, floor_targeted, params),
        total_comparables=len(scored),
        top_comparables=top,
        recent_6mo=sum(1 for s in scored if s.months_ago <= 6),
        recent_12mo=sum(1 for s in scored if s.months_ago <= params.recent_months),
        size_matches=sum(1 for s in scored if s.size_diff < params.size_match_sqft),
        floor_matches=floor_matches,
        cagr=cagr,
    )


class CMAValuationEngine:
    """
    Complete CMA pipeline for one project.

    Pipeline order:
    1. GROWTH - project CAGR (unless supplied)
    2. FLOORS - floor premiums (unless supplied)
    3. SCORE - weight and adjust every comparable
    4. VALUATE - weighted average, band and confidence
    """

    def __init__(self, reference_date: date = None, parameters: ScoringParameters = None):
        """
        Initialize valuation engine.

        Args:
            reference_date: Valuation date (default: today)
            parameters: Scoring parameters (default: DEFAULT_PARAMETERS)
        """
        self._reference_date = reference_date or date.today()
        self._params = parameters or DEFAULT_PARAMETERS

    @property
    def reference_date(self) -> date:
        return self._reference_date

    @property
    def parameters(self) -> ScoringParameters:
        return self._params

    def score(
        self,
        transactions: Iterable[Transaction],
        target_area: float,
        target_floor: Optional[str] = None,
        cagr: Optional[float] = None,
        bands: Optional[Sequence[FloorBand]] = None,
    ) -> List[ScoredTransaction]:
        """Score every transaction against the target unit."""
        target_floor_mid = floor_range_midpoint(target_floor) if target_floor else None
        return [
            score_transaction(
                tx,
                target_area=target_area,
                target_floor_mid=target_floor_mid,
                projected_cagr=cagr,
                bands=bands or [],
                as_of=self._reference_date,
                params=self._params,
            )
            for tx in transactions
        ]

    def value(
        self,
        transactions: Iterable[Transaction],
        target_area: float,
        target_floor: Optional[str] = None,
        cagr: Optional[float] = None,
        bands: Optional[Sequence[FloorBand]] = None,
        floor_bands: Sequence[str] = DEFAULT_FLOOR_BANDS,
    ) -> Optional[ValuationEstimate]:
        """
        Perform a complete valuation for a target unit.

        Args:
            transactions: Project transactions (already filtered)
            target_area: Target unit area in sqft
            target_floor: Optional target floor band, e.g. "06-10"
            cagr: Project CAGR; computed from the transactions if None
            bands: Floor premiums; computed from the transactions if None
            floor_bands: Band strings used when computing premiums

        Returns:
            ValuationEstimate, or None with too few comparables, a
            non-positive target area, or zero total weight
        """
        transactions = list(transactions)
        if not target_area or target_area <= 0:
            return None
        if len(transactions) < self._params.min_comparables:
            return None

        if cagr is None:
            cagr = bucketed_cagr(transactions).cagr
        if bands is None:
            bands = floor_premiums(transactions, floor_bands)

        scored = self.score(transactions, target_area, target_floor, cagr, bands)
        return weighted_valuation(scored, self._params, cagr=cagr)
