"""
Floor-Premium Model

Average PSF per floor band and each band's premium over the lowest
band that has data.
"""

from typing import Iterable, List, Optional, Sequence

from .models import DEFAULT_FLOOR_BANDS, FloorBand, Transaction, floor_in_range
from .stats import mean_psf, round_half_up


# Bands with fewer transactions than this are flagged thin
THIN_BAND_THRESHOLD = 3


def floor_premiums(
    transactions: Iterable[Transaction],
    floor_bands: Sequence[str] = DEFAULT_FLOOR_BANDS,
) -> List[FloorBand]:
    """
    Partition transactions into floor bands and price each band.

    Each transaction is assigned to the first band containing its floor
    midpoint. Empty bands are dropped. The first remaining band is the
    baseline with a premium of 0.

    Args:
        transactions: Sales for one project
        floor_bands: Contiguous band strings, lowest first

    Returns:
        FloorBand list in band order (empty when no floor data)
    """
    members = {band: [] for band in floor_bands}
    for tx in transactions:
        for band in floor_bands:
            if floor_in_range(tx.floor_mid, band):
                members[band].append(tx.psf)
                break

    result = []
    for band in floor_bands:
        values = members[band]
        if not values:
            continue
        result.append(FloorBand(
            range=band,
            psf=mean_psf(values),
            premium=0.0,
            count=len(values),
            thin=len(values) < THIN_BAND_THRESHOLD,
        ))

    if result:
        baseline = result[0].psf
        for band in result:
            if baseline > 0:
                band.premium = round_half_up((band.psf / baseline - 1) * 100, 1)
            else:
                band.premium = 0.0
        result[0].premium = 0.0

    return result


def thin_bands(bands: Iterable[FloorBand]) -> List[str]:
    """Ranges of bands flagged as thin."""
    return [band.range for band in bands if band.thin]


def premium_for_floor(floor_mid: Optional[float], bands: Iterable[FloorBand]) -> float:
    """Premium of the band containing a floor midpoint, 0 if none does."""
    for band in bands:
        if floor_in_range(floor_mid, band.range):
            return band.premium
    return 0.0
