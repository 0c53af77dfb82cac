"""
Tests for the Growth Engine and Time-Projection Function

Verifies:
- Point CAGR formula and its "no rate" cases
- Annual bucketing, gap years and low-confidence flagging
- Forward projection with half-up rounding
- CAGR and projection agree with each other
"""

import pytest
from datetime import date
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.cma_engine import Transaction, bucketed_cagr, point_cagr, project_forward
from core.cma_engine.stats import month_cutoff, months_elapsed, round_half_up


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def create_tx():
    """Factory fixture for creating transactions."""
    def _create(month: str, psf: float, area: float = 1000.0) -> Transaction:
        return Transaction(date=month, price=psf * area, area=area, psf=psf)
    return _create


@pytest.fixture
def five_year_history(create_tx):
    """Five sales at 1200 psf in 2019 and five at 1500 psf in 2024."""
    early = [create_tx(f"2019-0{m}", 1200) for m in range(1, 6)]
    late = [create_tx(f"2024-0{m}", 1500) for m in range(1, 6)]
    return early + late


# =============================================================================
# Numeric Helpers
# =============================================================================

class TestRoundHalfUp:
    """Rounding matches printed figures, not banker's rounding."""

    def test_ties_round_away_from_zero(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(-2.5) == -3

    def test_decimals(self):
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(4.5646, 2) == 4.56

    def test_ties_use_written_decimal_value(self):
        # 1.005 is stored as 1.00499999... in binary
        assert round_half_up(1.005, 2) == 1.01
        assert round_half_up(2.675, 2) == 2.68
        assert round_half_up(-1.005, 2) == -1.01

    def test_integer_result_without_decimals(self):
        assert isinstance(round_half_up(1102.5), int)


class TestMonthArithmetic:

    def test_months_elapsed(self):
        assert months_elapsed("2022-01", date(2024, 1, 15)) == 24
        assert months_elapsed("2024-01", date(2024, 1, 31)) == 0

    def test_future_month_is_zero(self):
        assert months_elapsed("2025-01", date(2024, 1, 1)) == 0

    def test_window_cutoff_includes_reference_month(self):
        assert month_cutoff(date(2024, 6, 1), 3) == "2024-04"
        assert month_cutoff(date(2024, 6, 1), 12) == "2023-07"

    def test_window_cutoff_crosses_year(self):
        assert month_cutoff(date(2024, 2, 10), 3) == "2023-12"


# =============================================================================
# Point CAGR
# =============================================================================

class TestPointCagr:

    def test_formula(self):
        assert point_cagr(1200, 1500, 5) == pytest.approx(4.564, abs=0.001)

    def test_negative_growth(self):
        assert point_cagr(1000, 900, 1) == pytest.approx(-10.0)

    def test_missing_or_non_positive_psf(self):
        assert point_cagr(None, 1500, 5) is None
        assert point_cagr(1200, None, 5) is None
        assert point_cagr(0, 1500, 5) is None
        assert point_cagr(1200, -1, 5) is None

    def test_no_elapsed_time(self):
        assert point_cagr(1200, 1500, 0) is None
        assert point_cagr(1200, 1500, -2) is None


# =============================================================================
# Bucketed CAGR
# =============================================================================

class TestBucketedCagr:

    def test_five_year_growth(self, five_year_history):
        result = bucketed_cagr(five_year_history)

        assert result.start_avg == 1200
        assert result.end_avg == 1500
        assert result.cagr == pytest.approx(4.56, abs=0.01)
        assert result.low_conf is False
        assert result.total_n == 10

    def test_thin_start_year_is_low_confidence(self, create_tx):
        txs = [create_tx("2019-06", 1200)] + [create_tx(f"2024-0{m}", 1500) for m in range(1, 6)]

        result = bucketed_cagr(txs)

        assert result.cagr == pytest.approx(4.56, abs=0.01)
        assert result.start_n == 1
        assert result.low_conf is True

    def test_gap_years_have_placeholders(self, five_year_history):
        result = bucketed_cagr(five_year_history)

        assert [a.year for a in result.annual_avg] == [2019, 2020, 2021, 2022, 2023, 2024]
        gap = result.annual_avg[1]
        assert gap.avg is None
        assert gap.n == 0

    def test_empty_input(self):
        result = bucketed_cagr([])

        assert result.cagr is None
        assert result.low_conf is True
        assert result.annual_avg == []
        assert result.total_n == 0

    def test_single_year_has_no_rate(self, create_tx):
        result = bucketed_cagr([create_tx("2024-01", 1500), create_tx("2024-03", 1520)])

        assert result.cagr is None
        assert result.start_avg == result.end_avg == 1510

    def test_explicit_year_without_data(self, five_year_history):
        result = bucketed_cagr(five_year_history, start_year=2020)

        assert result.start_avg is None
        assert result.start_n == 0
        assert result.cagr is None
        assert result.low_conf is True

    def test_inverted_range(self, five_year_history):
        result = bucketed_cagr(five_year_history, start_year=2024, end_year=2019)

        assert result.cagr is None
        assert result.annual_avg == []

    def test_annual_average_is_rounded_half_up(self, create_tx):
        txs = [create_tx("2020-01", 1000), create_tx("2020-02", 1001)]

        result = bucketed_cagr(txs)

        assert result.annual_avg[0].avg == 1001


# =============================================================================
# Time Projection
# =============================================================================

class TestProjectForward:

    def test_two_years_at_five_percent(self):
        result = project_forward(1000, "2022-01", 5, date(2024, 1, 15))

        assert result.adjusted_psf == 1103
        assert result.months_elapsed == 24
        assert result.rate == 5

    def test_no_rate_keeps_psf(self):
        result = project_forward(1000, "2022-01", None, date(2024, 1, 15))

        assert result.adjusted_psf == 1000
        assert result.months_elapsed == 24
        assert result.rate is None

    def test_same_month_keeps_psf(self):
        result = project_forward(1000, "2024-01", 5, date(2024, 1, 20))

        assert result.adjusted_psf == 1000
        assert result.months_elapsed == 0
        assert result.rate == 5

    def test_future_month_keeps_psf(self):
        result = project_forward(1000, "2025-01", 5, date(2024, 1, 20))

        assert result.adjusted_psf == 1000
        assert result.months_elapsed == 0

    def test_negative_rate(self):
        result = project_forward(1000, "2023-01", -10, date(2024, 1, 1))

        assert result.adjusted_psf == 900

    def test_missing_psf_or_date(self):
        assert project_forward(0, "2022-01", 5, date(2024, 1, 1)).months_elapsed == 0
        assert project_forward(1000, "", 5, date(2024, 1, 1)).rate is None

    def test_projection_recovers_bucketed_end_average(self, five_year_history):
        """Projecting the start average forward at the CAGR lands on the end average."""
        result = bucketed_cagr(five_year_history)

        projected = project_forward(result.start_avg, "2019-01", result.cagr, date(2024, 1, 15))

        assert projected.adjusted_psf == result.end_avg
