"""
Ingestion Layer

Normalises raw transaction records from the external data source into
canonical Transaction objects. This is the single entry point for sale
records entering the CMA engine.
"""

from core.ingestion.schema import (
    REJECTION_CODES,
    RejectionRecord,
    normalise_area_sqft,
    normalise_contract_date,
    normalise_floor_range,
    normalise_month,
    normalise_sale_type,
    normalise_tenure,
)
from core.ingestion.adapter import (
    TransactionAdapter,
    flatten_ura_response,
    load_transactions,
)

__all__ = [
    # Field normalisers
    "normalise_area_sqft",
    "normalise_contract_date",
    "normalise_floor_range",
    "normalise_month",
    "normalise_sale_type",
    "normalise_tenure",
    # Rejection handling
    "RejectionRecord",
    "REJECTION_CODES",
    # Adapter
    "TransactionAdapter",
    "flatten_ura_response",
    "load_transactions",
]
