"""
Formatting utilities.
"""

from typing import Optional


def format_currency(amount: float, currency: str = "SGD") -> str:
    """
    Format an amount as currency.

    Args:
        amount: The amount in whole units (rounded for display).
        currency: Currency code (default SGD).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "SGD": "$",
        "USD": "US$",
        "GBP": "£",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{round(amount):,}"


def format_psf(psf: Optional[float]) -> str:
    """Format a PSF value, e.g. "$1,450 psf"; "-" when absent."""
    if psf is None or psf <= 0:
        return "-"
    return f"{format_currency(psf)} psf"


def format_percent(value: Optional[float], decimals: int = 1, signed: bool = False) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value (None renders as "-").
        decimals: Number of decimal places.
        signed: Prefix positive values with "+".

    Returns:
        Formatted percentage string.
    """
    if value is None:
        return "-"
    sign = "+" if signed and value > 0 else ""
    return f"{sign}{value:.{decimals}f}%"
