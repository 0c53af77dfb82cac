"""
Time-Projection Function

Projects a historical PSF forward to the as-of month using an annual
growth rate, compounded over the elapsed months.
"""

from datetime import date
from typing import Optional

from .models import ProjectionResult
from .stats import months_elapsed, round_half_up


def project_forward(
    psf: float,
    transaction_date: str,
    annual_rate: Optional[float],
    as_of: date,
) -> ProjectionResult:
    """
    Project a PSF from its transaction month to as_of.

    adjusted = round(psf * (1 + rate / 100) ** (months / 12))

    Without a rate, or with less than one month elapsed, the original
    PSF is returned unchanged. Months and rate are still reported so the
    caller can explain why no adjustment was made.

    Args:
        psf: Historical price per square foot
        transaction_date: "YYYY-MM" month of the sale
        annual_rate: Annual growth rate in percent, or None
        as_of: Valuation date

    Returns:
        ProjectionResult
    """
    if not psf or not transaction_date:
        return ProjectionResult(adjusted_psf=psf, months_elapsed=0, rate=None)

    months = months_elapsed(transaction_date, as_of)

    if annual_rate is None:
        return ProjectionResult(adjusted_psf=psf, months_elapsed=months, rate=None)

    if months < 1:
        return ProjectionResult(adjusted_psf=psf, months_elapsed=0, rate=annual_rate)

    adjusted = round_half_up(psf * (1 + annual_rate / 100) ** (months / 12))
    return ProjectionResult(adjusted_psf=adjusted, months_elapsed=months, rate=annual_rate)
