"""
Growth Engine

Point-to-point and annually bucketed compound annual growth rate
(CAGR) over a project's transactions.

A missing rate is a normal outcome for new projects or thin data and is
reported as None, never as zero or infinity.
"""

from collections import defaultdict
from typing import Iterable, Optional

from .models import AnnualAverage, CagrResult, Transaction
from .stats import round_half_up


# Boundary years with fewer transactions than this are low confidence
MIN_BOUNDARY_TRANSACTIONS = 3


def point_cagr(start_psf: Optional[float], end_psf: Optional[float], years: float) -> Optional[float]:
    """
    CAGR in percent between two PSF observations.

    CAGR = ((end / start) ** (1 / years) - 1) * 100

    Args:
        start_psf: PSF at the start of the period
        end_psf: PSF at the end of the period
        years: Elapsed years

    Returns:
        Percentage growth rate, or None if either PSF is missing or
        non-positive, or no time has elapsed
    """
    if not start_psf or not end_psf or start_psf <= 0 or end_psf <= 0:
        return None
    if years is None or years <= 0:
        return None
    return ((end_psf / start_psf) ** (1 / years) - 1) * 100


def empty_cagr_result() -> CagrResult:
    """The "no data" result for an empty transaction set."""
    return CagrResult(
        start_avg=None,
        end_avg=None,
        start_n=0,
        end_n=0,
        cagr=None,
        low_conf=True,
        annual_avg=[],
        total_n=0,
    )


def bucketed_cagr(
    transactions: Iterable[Transaction],
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
) -> CagrResult:
    """
    CAGR between the average PSF of two calendar years.

    Transactions are grouped by year. Start and end years default to the
    earliest and latest year present. The annual sequence covers every
    year in the range, with placeholder entries for years without sales.

    Args:
        transactions: Sales for one project (any order)
        start_year: Optional explicit start year
        end_year: Optional explicit end year

    Returns:
        CagrResult (never raises; empty input gives the "no data" result)
    """
    transactions = list(transactions)
    if not transactions:
        return empty_cagr_result()

    buckets = defaultdict(lambda: [0.0, 0])
    for tx in transactions:
        bucket = buckets[tx.year]
        bucket[0] += tx.psf
        bucket[1] += 1

    years = sorted(buckets)
    sy = int(start_year) if start_year else years[0]
    ey = int(end_year) if end_year else years[-1]

    def _avg(year: int) -> Optional[int]:
        total, count = buckets.get(year, (0.0, 0))
        if count == 0:
            return None
        return round_half_up(total / count)

    start_avg = _avg(sy)
    end_avg = _avg(ey)
    start_n = buckets[sy][1] if sy in buckets else 0
    end_n = buckets[ey][1] if ey in buckets else 0

    annual_avg = [
        AnnualAverage(
            year=year,
            avg=_avg(year),
            n=buckets[year][1] if year in buckets else 0,
        )
        for year in range(sy, ey + 1)
    ]

    return CagrResult(
        start_avg=start_avg,
        end_avg=end_avg,
        start_n=start_n,
        end_n=end_n,
        cagr=point_cagr(start_avg, end_avg, ey - sy),
        low_conf=start_n < MIN_BOUNDARY_TRANSACTIONS or end_n < MIN_BOUNDARY_TRANSACTIONS,
        annual_avg=annual_avg,
        total_n=len(transactions),
        start_year=sy,
        end_year=ey,
    )
