"""
Integration tests for ProjectAnalyzer

Verifies that every statistic is computed from the same filtered set
and that the analysis is stable for a fixed reference date.
"""

import pytest
from datetime import date
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    ProjectAnalyzer,
    ReferenceStatus,
    ScoringParameters,
    TierLevel,
    Transaction,
    TransactionFilters,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return date(2024, 6, 15)


@pytest.fixture
def analyzer(reference_date):
    return ProjectAnalyzer(reference_date=reference_date)


@pytest.fixture
def project_transactions():
    """Three years of sales for two unit types on two floor bands."""
    txs = []
    for year, base in ((2022, 1300), (2023, 1400), (2024, 1500)):
        for month in (1, 3, 5):
            txs.append(Transaction(
                date=f"{year}-{month:02d}",
                price=base * 1000,
                area=1000.0,
                psf=base,
                floor_range="11-15",
                beds="3",
                sale_type="Resale",
            ))
            txs.append(Transaction(
                date=f"{year}-{month + 1:02d}",
                price=(base - 100) * 700,
                area=700.0,
                psf=base - 100,
                floor_range="01-05",
                beds="2",
                sale_type="New Sale",
            ))
    return txs


# =============================================================================
# Analysis
# =============================================================================

class TestProjectAnalyzer:

    def test_full_pipeline(self, analyzer, project_transactions):
        analysis = analyzer.analyze(project_transactions, target_area=1000, target_floor="11-15")

        assert analysis.transaction_count == 18
        assert analysis.project_cagr is not None
        assert analysis.cagr.low_conf is False
        assert [b.range for b in analysis.floor_bands] == ["01-05", "11-15"]
        assert analysis.best.tier.level == TierLevel.EXACT_MATCH
        assert analysis.valuation is not None
        assert analysis.filtered is False

    def test_estimated_value(self, analyzer, project_transactions):
        analysis = analyzer.analyze(project_transactions, target_area=1000, target_floor="11-15")

        assert analysis.estimated_value == analysis.valuation.weighted_avg_psf * 1000
        assert analysis.best_estimate_value == analysis.best.psf * 1000

    def test_best_estimate_projected_from_median_sale(self, analyzer, project_transactions):
        analysis = analyzer.analyze(project_transactions, target_area=1000, target_floor="11-15")

        # Exact tier 3M window holds only the 2024-05 sale
        assert analysis.best.window.median_date() == "2024-05"
        assert analysis.best_projection.months_elapsed == 1
        assert analysis.best_projection.adjusted_psf > analysis.best.psf

    def test_filters_apply_to_every_statistic(self, analyzer, project_transactions):
        analysis = analyzer.analyze(
            project_transactions,
            target_area=700,
            filters=TransactionFilters(beds="2"),
        )

        assert analysis.filtered is True
        assert analysis.transaction_count == 9
        assert analysis.cagr.start_avg == 1200
        assert [b.range for b in analysis.floor_bands] == ["01-05"]
        assert all(t.beds == "2" for t in analysis.transactions)

    def test_size_snaps_to_project_sizes(self, analyzer, project_transactions):
        analysis = analyzer.analyze(project_transactions, target_area=980, project_sizes=[700, 1000])

        assert analysis.size_target == 1000
        assert analysis.tiers[1].windows[12].count == 3

    def test_too_few_transactions(self, analyzer, project_transactions):
        analysis = analyzer.analyze(project_transactions[:2], target_area=1000)

        assert analysis.valuation is None
        assert analysis.estimated_value is None
        assert analysis.project_cagr is None

    @pytest.mark.parametrize("target_area", [0, -500])
    def test_non_positive_area_has_no_estimate(self, analyzer, project_transactions, target_area):
        analysis = analyzer.analyze(project_transactions, target_area=target_area, target_floor="11-15")

        assert analysis.best is None
        assert analysis.best_estimate_value is None
        assert analysis.best_projection is None
        assert analysis.valuation is None
        assert analysis.estimated_value is None
        assert analysis.project_cagr is not None

    def test_empty_project(self, analyzer):
        analysis = analyzer.analyze([], target_area=1000, target_floor="11-15")

        assert analysis.best is None
        assert analysis.best_projection is None
        assert analysis.valuation is None
        assert analysis.floor_bands == []

    def test_scoring_parameters_passed_through(self, reference_date, project_transactions):
        analyzer = ProjectAnalyzer(reference_date, ScoringParameters(min_comparables=50))

        assert analyzer.analyze(project_transactions, target_area=1000).valuation is None

    def test_to_dict(self, analyzer, project_transactions):
        data = analyzer.analyze(project_transactions, target_area=1000).to_dict()

        assert data["as_of"] == "2024-06-15"
        assert data["transaction_count"] == 18
        assert data["valuation"]["confidence"] <= 100
        assert data["thin_bands"] == []

    def test_reference_projection(self, analyzer, project_transactions):
        reference = project_transactions[0]

        projection = analyzer.project_reference(reference, project_transactions)

        assert projection.status == ReferenceStatus.ADJUSTED
        assert projection.months_elapsed == 29
        assert projection.adjusted_psf > reference.psf
