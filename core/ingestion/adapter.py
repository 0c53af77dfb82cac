"""
Transaction Adapter - Raw Records to Canonical Transactions

Normalises URA-style transaction records (nested per project or flat)
into Transaction objects for the CMA engine, tracking every rejected
record instead of failing the batch.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from core.cma_engine.models import Transaction, infer_bedrooms
from core.cma_engine.stats import round_half_up
from core.ingestion.schema import (
    RejectionRecord,
    normalise_area_sqft,
    normalise_contract_date,
    normalise_floor_range,
    normalise_month,
    normalise_sale_type,
    normalise_tenure,
)


logger = logging.getLogger(__name__)


def flatten_ura_response(raw: Any) -> List[dict]:
    """
    Flatten a nested URA response into one dict per transaction.

    URA returns {"Result": [{project, street, marketSegment,
    transaction: [...]}]}; project-level fields are copied onto each
    transaction.
    """
    if isinstance(raw, list):
        records = raw
    elif isinstance(raw, dict):
        records = raw.get("Result") or raw.get("result") or []
    else:
        records = []

    flat = []
    for project in records:
        txs = project.get("transaction") or project.get("transactions") or []
        for tx in txs:
            flat.append({
                **tx,
                "project": project.get("project") or tx.get("project") or "Unknown",
                "street": project.get("street") or tx.get("street") or "",
                "marketSegment": project.get("marketSegment") or tx.get("marketSegment") or "",
            })
    return flat


def _positive_float(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class TransactionAdapter:
    """
    Normalises raw transaction records for one data source.

    Accepts either raw URA records (contractDate / sqm area) or records
    already in canonical form (date / sqft area). Rejections are kept on
    the adapter for quality monitoring.
    """

    def __init__(self, source_id: str = "ura"):
        self._source_id = source_id
        self._rejections: List[RejectionRecord] = []

    @property
    def rejections(self) -> List[RejectionRecord]:
        return list(self._rejections)

    def clear_rejections(self) -> None:
        self._rejections = []

    def _reject(self, index: int, code: str, raw: Optional[dict]) -> None:
        record = RejectionRecord.create(
            source_id=self._source_id,
            record_index=index,
            rejection_code=code,
            raw_data=raw,
        )
        self._rejections.append(record)
        logger.warning(
            "Rejected transaction %d from %s: %s",
            index,
            self._source_id,
            code,
        )

    def normalise_ura(self, raw: dict, index: int = 0) -> Optional[Transaction]:
        """Normalise one raw URA transaction record."""
        month = normalise_contract_date(raw.get("contractDate"))
        if month is None:
            self._reject(index, "INVALID_DATE", raw)
            return None

        area = normalise_area_sqft(raw.get("area"))
        if area <= 0:
            self._reject(index, "INVALID_AREA", raw)
            return None

        price = _positive_float(raw.get("price"))
        if price is None:
            self._reject(index, "INVALID_PRICE", raw)
            return None

        floor_band, floor_mid = normalise_floor_range(raw.get("floorRange"))

        return Transaction(
            date=month,
            price=price,
            area=area,
            psf=round_half_up(price / area),
            floor_range=floor_band,
            floor_mid=floor_mid,
            sale_type=normalise_sale_type(raw.get("typeOfSale")),
            tenure=normalise_tenure(raw.get("tenure")),
            beds=infer_bedrooms(area),
            project=raw.get("project") or "",
        )

    def normalise_canonical(self, raw: dict, index: int = 0) -> Optional[Transaction]:
        """Build a Transaction from a record already in canonical form."""
        month = normalise_month(raw.get("date"))
        if month is None:
            self._reject(index, "INVALID_DATE", raw)
            return None

        area = _positive_float(raw.get("area"))
        if area is None:
            self._reject(index, "INVALID_AREA", raw)
            return None

        price = _positive_float(raw.get("price"))
        psf = _positive_float(raw.get("psf"))
        if price is None and psf is None:
            self._reject(index, "INVALID_PRICE", raw)
            return None
        if price is None:
            price = psf * area

        floor_range = raw.get("floor_range", raw.get("floorRange"))
        floor_mid = raw.get("floor_mid", raw.get("floorMid"))
        beds = raw.get("beds")

        return Transaction(
            date=month,
            price=price,
            area=area,
            psf=psf,
            floor_range=floor_range or None,
            floor_mid=float(floor_mid) if floor_mid else None,
            sale_type=raw.get("sale_type", raw.get("saleType")),
            tenure=raw.get("tenure"),
            beds=str(beds) if beds is not None else None,
            project=raw.get("project") or "",
        )

    def normalise_all(self, records: Iterable[dict]) -> List[Transaction]:
        """
        Normalise a batch, skipping (and recording) invalid records.

        Records with a "contractDate" key are treated as raw URA data.
        """
        transactions = []
        for index, raw in enumerate(records):
            if "contractDate" in raw:
                tx = self.normalise_ura(raw, index)
            else:
                tx = self.normalise_canonical(raw, index)
            if tx is not None:
                transactions.append(tx)

        if self._rejections:
            logger.info(
                "Normalised %d transactions from %s (%d rejected)",
                len(transactions),
                self._source_id,
                len(self._rejections),
            )
        return transactions


def load_transactions(data: Any, source_id: str = "ura") -> List[Transaction]:
    """
    Convenience loader for JSON payloads.

    Accepts a nested URA response, a {"transactions": [...]} wrapper or
    a plain list of records.
    """
    if isinstance(data, dict) and "transactions" in data:
        records = data["transactions"]
    elif isinstance(data, dict) or (
        isinstance(data, list) and data and isinstance(data[0], dict) and "transaction" in data[0]
    ):
        records = flatten_ura_response(data)
    else:
        records = data or []

    return TransactionAdapter(source_id).normalise_all(records)
