"""
CMA Engine v1.0

Comparable market analysis for a single residential project: project
CAGR, floor premiums, tiered PSF estimates and a weighted CMA valuation
with a confidence score.

All functions are pure over lists of transactions and take an explicit
as-of date wherever time matters.
"""

from .models import (
    DEFAULT_FLOOR_BANDS,
    AnnualAverage,
    CagrResult,
    FloorBand,
    ProjectionResult,
    SaleType,
    ScoredTransaction,
    TenureCategory,
    Transaction,
    ValuationEstimate,
    floor_in_range,
    floor_range_bounds,
    floor_range_midpoint,
    infer_bedrooms,
)
from .growth import bucketed_cagr, point_cagr
from .projection import project_forward
from .floor_premium import floor_premiums, premium_for_floor, thin_bands
from .tiers import (
    BestEstimate,
    Tier,
    TierLevel,
    TierWindow,
    best_estimate,
    build_tier,
    build_tiers,
    nearest_size,
    rolling_windows,
)
from .valuation import (
    DEFAULT_PARAMETERS,
    CMAValuationEngine,
    ScoringParameters,
    score_transaction,
    weighted_valuation,
)
from .reference import ReferenceProjection, ReferenceStatus, project_reference
from .filters import TransactionFilters, filter_transactions
from .investor import DEFAULT_YIELD, BreakdownMode, InvestorRow, investor_breakdown

__all__ = [
    # Models
    "DEFAULT_FLOOR_BANDS",
    "AnnualAverage",
    "CagrResult",
    "FloorBand",
    "ProjectionResult",
    "SaleType",
    "ScoredTransaction",
    "TenureCategory",
    "Transaction",
    "ValuationEstimate",
    "floor_in_range",
    "floor_range_bounds",
    "floor_range_midpoint",
    "infer_bedrooms",
    # Growth / projection
    "bucketed_cagr",
    "point_cagr",
    "project_forward",
    # Floor premiums
    "floor_premiums",
    "premium_for_floor",
    "thin_bands",
    # Tiers
    "BestEstimate",
    "Tier",
    "TierLevel",
    "TierWindow",
    "best_estimate",
    "build_tier",
    "build_tiers",
    "nearest_size",
    "rolling_windows",
    # Valuation
    "DEFAULT_PARAMETERS",
    "CMAValuationEngine",
    "ScoringParameters",
    "score_transaction",
    "weighted_valuation",
    # Reference projection
    "ReferenceProjection",
    "ReferenceStatus",
    "project_reference",
    # Filters / investor view
    "TransactionFilters",
    "filter_transactions",
    "DEFAULT_YIELD",
    "BreakdownMode",
    "InvestorRow",
    "investor_breakdown",
]

__version__ = "1.0"
