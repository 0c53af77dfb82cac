"""
Tests for the reference-transaction projector, master filters and the
investor CAGR breakdown.
"""

import pytest
from datetime import date
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.cma_engine import (
    BreakdownMode,
    ReferenceStatus,
    Transaction,
    TransactionFilters,
    filter_transactions,
    investor_breakdown,
    project_reference,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def create_tx():
    """Factory fixture for creating transactions."""
    def _create(
        month: str,
        psf: float,
        area: float = 1000.0,
        floor_range: str = None,
        sale_type: str = "Resale",
        tenure: str = "Leasehold",
        beds: str = None,
    ) -> Transaction:
        return Transaction(
            date=month,
            price=psf * area,
            area=area,
            psf=psf,
            floor_range=floor_range,
            sale_type=sale_type,
            tenure=tenure,
            beds=beds,
        )
    return _create


@pytest.fixture
def mixed_project(create_tx):
    """Two unit sizes across two floor bands, 2020 and 2024."""
    txs = []
    for month in ("2020-02", "2020-05", "2020-08"):
        txs.append(create_tx(month, 1000, 700, "01-05", beds="2"))
        txs.append(create_tx(month, 1100, 1000, "11-15", "New Sale", "Freehold", beds="3"))
    for month in ("2024-02", "2024-05", "2024-08"):
        txs.append(create_tx(month, 1200, 700, "01-05", beds="2"))
        txs.append(create_tx(month, 1300, 1000, "11-15", beds="2/3"))
    return txs


# =============================================================================
# Reference Projection
# =============================================================================

class TestProjectReference:

    def test_adjusted(self, create_tx):
        tx = create_tx("2022-01", 1000, 1200)

        ref = project_reference(tx, 5, date(2024, 1, 15))

        assert ref.status == ReferenceStatus.ADJUSTED
        assert ref.original_psf == 1000
        assert ref.adjusted_psf == 1103
        assert ref.delta_psf == 103
        assert ref.delta_percent == 10.3
        assert ref.adjusted_value == 1103 * 1200
        assert ref.original_value == 1000 * 1200

    def test_insufficient_data(self, create_tx):
        ref = project_reference(create_tx("2022-01", 1000), None, date(2024, 1, 15))

        assert ref.status == ReferenceStatus.INSUFFICIENT_DATA
        assert ref.adjusted_psf == 1000
        assert ref.months_elapsed == 24

    def test_current(self, create_tx):
        ref = project_reference(create_tx("2024-01", 1000), 5, date(2024, 1, 15))

        assert ref.status == ReferenceStatus.CURRENT
        assert ref.adjusted_psf == 1000
        assert ref.delta_percent == 0.0

    def test_to_dict(self, create_tx):
        data = project_reference(create_tx("2022-01", 1000), 5, date(2024, 1, 15)).to_dict()

        assert data["status"] == "adjusted"
        assert data["months_elapsed"] == 24


# =============================================================================
# Master Filters
# =============================================================================

class TestFilters:

    def test_no_filters_returns_copy(self, mixed_project):
        result = filter_transactions(mixed_project, None)

        assert result == mixed_project
        assert result is not mixed_project

    def test_beds_matches_alternatives(self, mixed_project):
        result = filter_transactions(mixed_project, TransactionFilters(beds="3"))

        assert len(result) == 6
        assert all("3" in t.beds.split("/") for t in result)

    def test_year_range(self, mixed_project):
        result = filter_transactions(mixed_project, TransactionFilters(year_from=2021, year_to=2024))

        assert len(result) == 6
        assert all(t.year == 2024 for t in result)

    def test_sale_type_and_tenure(self, mixed_project):
        result = filter_transactions(
            mixed_project,
            TransactionFilters(sale_type="New Sale", tenure="Freehold"),
        )

        assert len(result) == 3

    def test_floor(self, mixed_project):
        result = filter_transactions(mixed_project, TransactionFilters(floor="11-15"))

        assert len(result) == 6
        assert all(t.floor_range == "11-15" for t in result)

    def test_all_is_inactive(self, mixed_project):
        filters = TransactionFilters(beds="all", sale_type="")

        assert not filters.is_active
        assert len(filter_transactions(mixed_project, filters)) == 12

    def test_active(self):
        assert TransactionFilters(year_from=2020).is_active


# =============================================================================
# Investor Breakdown
# =============================================================================

class TestInvestorBreakdown:

    def test_overall(self, mixed_project):
        rows = investor_breakdown(mixed_project)

        assert len(rows) == 1
        row = rows[0]
        assert row.label == "ALL UNITS"
        assert row.gross_yield == 2.8
        assert row.result.cagr is not None
        assert row.total_return == pytest.approx(row.result.cagr + 2.8, abs=0.05)

    def test_by_size(self, mixed_project):
        rows = investor_breakdown(mixed_project, BreakdownMode.SIZE, project_sizes=[700, 1000])

        assert [r.label for r in rows] == ["700 sqft", "1,000 sqft"]
        assert rows[0].result.start_avg == 1000
        assert rows[0].result.end_avg == 1200

    def test_by_floor_prices_yield_from_rent(self, mixed_project):
        rows = investor_breakdown(
            mixed_project,
            BreakdownMode.FLOOR,
            floor_bands=("01-05", "11-15"),
            rent_psf=3.3,
        )

        assert [r.label for r in rows] == ["Floor 01-05", "Floor 11-15"]
        # 01-05 averages 1100 psf across both years
        assert rows[0].gross_yield == 3.6

    def test_floor_without_rent_uses_project_yield(self, mixed_project):
        rows = investor_breakdown(mixed_project, BreakdownMode.FLOOR, gross_yield=3.1)

        assert all(r.gross_yield == 3.1 for r in rows)

    def test_empty_band_has_no_return(self, mixed_project):
        rows = investor_breakdown(mixed_project, BreakdownMode.FLOOR)

        empty = [r for r in rows if r.label == "Floor 31+"][0]
        assert empty.result.cagr is None
        assert empty.total_return is None
        assert empty.low_conf

    def test_by_beds(self, mixed_project):
        rows = investor_breakdown(mixed_project, BreakdownMode.BEDS)

        assert [r.label for r in rows] == ["2 BR", "3 BR"]
        assert rows[0].description == "9 transactions"
