"""
Project Analyzer - Integrated CMA Pipeline

Single call site for the price estimator, the full valuation model,
the investor view and the client report builder. Every statistic is
computed from the same filtered transaction set.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .cma_engine.stats import round_half_up
from .cma_engine import (
    DEFAULT_FLOOR_BANDS,
    BestEstimate,
    CagrResult,
    CMAValuationEngine,
    FloorBand,
    ProjectionResult,
    ReferenceProjection,
    ScoringParameters,
    Tier,
    Transaction,
    TransactionFilters,
    ValuationEstimate,
    best_estimate,
    bucketed_cagr,
    build_tiers,
    filter_transactions,
    floor_premiums,
    nearest_size,
    project_forward,
    project_reference,
    thin_bands,
)


logger = logging.getLogger(__name__)


@dataclass
class ProjectAnalysis:
    """
    Everything the presentation layer needs for one target unit.

    Absent statistics are None; the caller decides how to present them.
    """
    as_of: date
    target_area: float
    target_floor: Optional[str]
    size_target: float
    transaction_count: int
    cagr: CagrResult
    floor_bands: List[FloorBand]
    tiers: List[Tier]
    best: Optional[BestEstimate]
    best_projection: Optional[ProjectionResult]
    valuation: Optional[ValuationEstimate]
    filtered: bool = False
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def project_cagr(self) -> Optional[float]:
        return self.cagr.cagr

    @property
    def thin_bands(self) -> List[str]:
        return thin_bands(self.floor_bands)

    @property
    def best_estimate_value(self) -> Optional[int]:
        """Best-estimate PSF times the target area."""
        if self.best is None or not self.target_area or self.target_area <= 0:
            return None
        return round_half_up(self.best.psf * self.target_area)

    @property
    def estimated_value(self) -> Optional[int]:
        """CMA weighted PSF times the target area."""
        if self.valuation is None:
            return None
        return round_half_up(self.valuation.weighted_avg_psf * self.target_area)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "as_of": self.as_of.isoformat(),
            "target_area": self.target_area,
            "target_floor": self.target_floor,
            "size_target": self.size_target,
            "transaction_count": self.transaction_count,
            "filtered": self.filtered,
            "cagr": self.cagr.to_dict(),
            "floor_bands": [b.to_dict() for b in self.floor_bands],
            "thin_bands": self.thin_bands,
            "tiers": [t.to_dict() for t in self.tiers],
            "best_estimate": self.best.to_dict() if self.best else None,
            "best_estimate_value": self.best_estimate_value,
            "best_projection": self.best_projection.to_dict() if self.best_projection else None,
            "valuation": self.valuation.to_dict() if self.valuation else None,
            "estimated_value": self.estimated_value,
        }


class ProjectAnalyzer:
    """
    Runs the full CMA pipeline for one project.

    Pipeline order:
    1. FILTER - master filters (beds, years, sale type, tenure, floor)
    2. GROWTH - bucketed project CAGR
    3. FLOORS - floor premiums
    4. TIERS - rolling-window tier averages and best estimate
    5. VALUATE - weighted CMA estimate
    """

    def __init__(self, reference_date: date = None, parameters: ScoringParameters = None):
        """
        Initialize the project analyzer.

        Args:
            reference_date: Valuation date (default: today)
            parameters: CMA scoring parameters
        """
        self._reference_date = reference_date or date.today()
        self._engine = CMAValuationEngine(
            reference_date=self._reference_date,
            parameters=parameters,
        )

    @property
    def reference_date(self) -> date:
        return self._reference_date

    def analyze(
        self,
        transactions: Iterable[Transaction],
        target_area: float,
        target_floor: Optional[str] = None,
        filters: Optional[TransactionFilters] = None,
        project_sizes: Sequence[float] = (),
        floor_bands: Sequence[str] = DEFAULT_FLOOR_BANDS,
        start_year: Optional[int] = None,
        end_year: Optional[int] = None,
    ) -> ProjectAnalysis:
        """
        Analyze a project for one target unit.

        Args:
            transactions: All transactions for the project
            target_area: Target unit area in sqft
            target_floor: Optional target floor band
            filters: Optional master filters
            project_sizes: Unit sizes offered; the size tier snaps to the nearest
            floor_bands: Floor bands for premiums
            start_year: Optional CAGR start year
            end_year: Optional CAGR end year

        Returns:
            ProjectAnalysis
        """
        txs = filter_transactions(transactions, filters)
        area_valid = bool(target_area) and target_area > 0
        size_target = nearest_size(target_area, project_sizes) if area_valid else target_area

        cagr = bucketed_cagr(txs, start_year, end_year)
        bands = floor_premiums(txs, floor_bands)
        tiers = build_tiers(txs, self._reference_date, size_target, target_floor)
        # No unit to price without a positive area
        best = best_estimate(tiers) if area_valid else None

        best_projection = None
        if best is not None:
            median_date = best.window.median_date()
            best_projection = project_forward(best.psf, median_date, cagr.cagr, self._reference_date)

        valuation = self._engine.value(
            txs,
            target_area=target_area,
            target_floor=target_floor,
            cagr=cagr.cagr,
            bands=bands,
        )

        logger.debug(
            "Analyzed %d transactions (cagr=%s, bands=%d, best=%s, confidence=%s)",
            len(txs),
            cagr.cagr,
            len(bands),
            best.psf if best else None,
            valuation.confidence if valuation else None,
        )

        return ProjectAnalysis(
            as_of=self._reference_date,
            target_area=target_area,
            target_floor=target_floor,
            size_target=size_target,
            transaction_count=len(txs),
            cagr=cagr,
            floor_bands=bands,
            tiers=tiers,
            best=best,
            best_projection=best_projection,
            valuation=valuation,
            filtered=bool(filters and filters.is_active),
            transactions=txs,
        )

    def project_reference(
        self,
        transaction: Transaction,
        transactions: Iterable[Transaction],
    ) -> ReferenceProjection:
        """Project a reference sale with the CAGR of the given set."""
        rate = bucketed_cagr(transactions).cagr
        return project_reference(transaction, rate, self._reference_date)
