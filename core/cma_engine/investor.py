"""
Investor CAGR breakdown.

Bucketed CAGR per slice of a project (overall, unit size, floor band or
bedroom count), paired with a gross rental yield for a total-return view.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .floor_premium import floor_premiums
from .growth import bucketed_cagr
from .models import DEFAULT_FLOOR_BANDS, CagrResult, Transaction, floor_in_range
from .stats import round_half_up
from .tiers import SIZE_MATCH_SQFT


# Gross yield (%) used when the project has no rental evidence
DEFAULT_YIELD = 2.8


class BreakdownMode(Enum):
    OVERALL = "overall"
    SIZE = "size"
    FLOOR = "floor"
    BEDS = "beds"


@dataclass
class InvestorRow:
    """One row of the breakdown table."""
    label: str
    description: str
    result: CagrResult
    gross_yield: float

    @property
    def total_return(self) -> Optional[float]:
        if self.result.cagr is None:
            return None
        return round_half_up(self.result.cagr + self.gross_yield, 1)

    @property
    def low_conf(self) -> bool:
        return self.result.low_conf

    def to_dict(self) -> dict:
        data = self.result.to_dict()
        data.update({
            "label": self.label,
            "description": self.description,
            "gross_yield": self.gross_yield,
            "total_return": self.total_return,
        })
        return data


def investor_breakdown(
    transactions: Iterable[Transaction],
    mode: BreakdownMode = BreakdownMode.OVERALL,
    project_sizes: Sequence[float] = (),
    floor_bands: Sequence[str] = DEFAULT_FLOOR_BANDS,
    gross_yield: Optional[float] = None,
    rent_psf: Optional[float] = None,
) -> List[InvestorRow]:
    """
    CAGR rows for the requested slicing.

    Args:
        transactions: Project transactions (already filtered)
        mode: How to slice the project
        project_sizes: Unit sizes offered by the project (size mode)
        floor_bands: Floor bands (floor mode)
        gross_yield: Project gross yield in percent (default DEFAULT_YIELD)
        rent_psf: Monthly rent per sqft, used to price floor-band yields

    Returns:
        List of InvestorRow (rows for empty slices keep the "no data" result)
    """
    transactions = list(transactions)
    base_yield = gross_yield if gross_yield else DEFAULT_YIELD

    if mode == BreakdownMode.OVERALL:
        return [InvestorRow(
            label="ALL UNITS",
            description="All sizes, all floors",
            result=bucketed_cagr(transactions),
            gross_yield=base_yield,
        )]

    rows = []
    if mode == BreakdownMode.SIZE:
        for size in project_sizes:
            subset = [t for t in transactions if abs(t.area - size) < SIZE_MATCH_SQFT]
            rows.append(InvestorRow(
                label=f"{size:,.0f} sqft",
                description=f"{len(subset)} transactions",
                result=bucketed_cagr(subset),
                gross_yield=base_yield,
            ))

    elif mode == BreakdownMode.FLOOR:
        priced = {band.range: band for band in floor_premiums(transactions, floor_bands)}
        for band in floor_bands:
            subset = [t for t in transactions if floor_in_range(t.floor_mid, band)]
            floor_yield = base_yield
            band_data = priced.get(band)
            if band_data and band_data.psf > 0 and rent_psf and rent_psf > 0:
                floor_yield = round_half_up(rent_psf * 12 / band_data.psf * 100, 2)
            rows.append(InvestorRow(
                label=f"Floor {band}",
                description=f"{len(subset)} transactions",
                result=bucketed_cagr(subset),
                gross_yield=floor_yield,
            ))

    elif mode == BreakdownMode.BEDS:
        labels = sorted({b for t in transactions if t.beds for b in t.beds.split("/")})
        for beds in labels:
            subset = [t for t in transactions if t.beds and beds in t.beds.split("/")]
            rows.append(InvestorRow(
                label=f"{beds} BR",
                description=f"{len(subset)} transactions",
                result=bucketed_cagr(subset),
                gross_yield=base_yield,
            ))

    return rows
