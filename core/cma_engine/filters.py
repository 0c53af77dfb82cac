"""
Master filters applied to a project's transactions before any
statistic is computed.

Every filter is optional; an unset filter keeps all transactions.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import Transaction, floor_in_range


ALL = "all"


@dataclass
class TransactionFilters:
    """User-selected sub-filters for one project."""
    beds: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    sale_type: Optional[str] = None
    tenure: Optional[str] = None
    floor: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Whether any filter narrows the set."""
        return any(
            _set(value)
            for value in (self.beds, self.year_from, self.year_to, self.sale_type, self.tenure, self.floor)
        )


def _set(value) -> bool:
    return value not in (None, "", ALL)


def matches_beds(tx: Transaction, beds: str) -> bool:
    """Bedroom labels may list alternatives, e.g. "2/3"."""
    if not tx.beds:
        return False
    return beds in tx.beds.split("/")


def filter_transactions(
    transactions: Iterable[Transaction],
    filters: Optional[TransactionFilters],
) -> List[Transaction]:
    """Return the transactions passing every active filter (new list)."""
    result = list(transactions)
    if filters is None:
        return result

    if _set(filters.beds):
        result = [t for t in result if matches_beds(t, filters.beds)]
    if _set(filters.year_from):
        result = [t for t in result if t.year >= int(filters.year_from)]
    if _set(filters.year_to):
        result = [t for t in result if t.year <= int(filters.year_to)]
    if _set(filters.sale_type):
        result = [t for t in result if t.sale_type == filters.sale_type]
    if _set(filters.tenure):
        result = [t for t in result if t.tenure == filters.tenure]
    if _set(filters.floor):
        result = [t for t in result if floor_in_range(t.floor_mid, filters.floor)]

    return result
