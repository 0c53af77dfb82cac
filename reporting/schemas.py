"""
Canonical schemas for client report snapshots.

A client report is a frozen serialisation of engine outputs for one
unit. Snapshots are persisted by an external store and re-rendered later
without recomputing anything, so every field here is plain data.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from core.cma_engine import FloorBand, ReferenceProjection, Transaction
from core.project_analyzer import ProjectAnalysis


DEFAULT_CLIENT_NAME = "Unnamed Client"

# Maximum evidence rows carried into a snapshot
MAX_EVIDENCE_ROWS = 20


@dataclass
class ReportSections:
    """Which sections the report shows."""
    overview: bool = True
    market_position: bool = True
    valuation: bool = True
    reference_tx: bool = False
    evidence: bool = False
    yield_info: bool = True
    floor_premium: bool = False


@dataclass
class UnitConfig:
    """The unit being valued."""
    area: float
    floor: Optional[str] = None


@dataclass
class ProjectProfile:
    """Descriptive project facts supplied by the caller."""
    name: str
    district: str = ""
    segment: str = ""
    tenure: str = ""
    property_type: str = ""


@dataclass
class MarketPosition:
    """Project-level pricing context."""
    avg_psf: Optional[int] = None
    med_psf: Optional[int] = None
    psf_period: str = ""
    district_avg_psf: Optional[int] = None


@dataclass
class CMASnapshot:
    """Weighted CMA estimate as shown to the client."""
    weighted_avg_psf: int
    low_psf: int
    high_psf: int
    confidence: int
    total_tx: int
    estimated_value: Optional[int] = None


@dataclass
class ReferenceSnapshot:
    """A reference sale projected to the report date."""
    date: str
    orig_psf: float
    adj_psf: float
    area: float
    floor: str
    sale_type: str
    months: int
    rate: Optional[float]
    status: str


@dataclass
class EvidenceRow:
    """One supporting transaction."""
    date: str
    floor: str
    area: float
    price: float
    psf: float
    sale_type: str


@dataclass
class YieldInfo:
    """Rental yield context."""
    gross_yield: Optional[float] = None
    rent_psf: Optional[float] = None
    avg_rent: Optional[float] = None
    has_real_rental: bool = False


@dataclass
class FloorPremiumRow:
    range: str
    psf: int
    premium: float
    count: int
    thin: bool


@dataclass
class ClientReport:
    """
    Saved client report.

    Built once from engine outputs; to_dict/from_dict give a JSON-safe
    round trip for the persistence collaborator.
    """
    id: str
    client_name: str
    project_name: str
    created_at: str
    as_of: str
    unit: UnitConfig
    sections: ReportSections
    project: ProjectProfile
    notes: str = ""
    market_position: MarketPosition = field(default_factory=MarketPosition)
    cma: Optional[CMASnapshot] = None
    reference_tx: Optional[ReferenceSnapshot] = None
    evidence: List[EvidenceRow] = field(default_factory=list)
    yield_info: YieldInfo = field(default_factory=YieldInfo)
    floor_premium: List[FloorPremiumRow] = field(default_factory=list)
    project_cagr: Optional[float] = None
    cagr_low_conf: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ClientReport":
        """Rebuild a saved report."""
        cma = data.get("cma")
        ref = data.get("reference_tx")
        return cls(
            id=data["id"],
            client_name=data.get("client_name") or DEFAULT_CLIENT_NAME,
            project_name=data.get("project_name", ""),
            created_at=data.get("created_at", ""),
            as_of=data.get("as_of", ""),
            unit=UnitConfig(**data["unit"]),
            sections=ReportSections(**data.get("sections", {})),
            project=ProjectProfile(**data["project"]),
            notes=data.get("notes", ""),
            market_position=MarketPosition(**data.get("market_position", {})),
            cma=CMASnapshot(**cma) if cma else None,
            reference_tx=ReferenceSnapshot(**ref) if ref else None,
            evidence=[EvidenceRow(**row) for row in data.get("evidence", [])],
            yield_info=YieldInfo(**data.get("yield_info", {})),
            floor_premium=[FloorPremiumRow(**row) for row in data.get("floor_premium", [])],
            project_cagr=data.get("project_cagr"),
            cagr_low_conf=data.get("cagr_low_conf", True),
        )


# =============================================================================
# Snapshot Builder
# =============================================================================

def _evidence_row(tx: Transaction) -> EvidenceRow:
    return EvidenceRow(
        date=tx.date,
        floor=tx.floor_range or "-",
        area=tx.area,
        price=tx.price,
        psf=tx.psf,
        sale_type=tx.sale_type or "-",
    )


def _floor_row(band: FloorBand) -> FloorPremiumRow:
    return FloorPremiumRow(
        range=band.range,
        psf=band.psf,
        premium=band.premium,
        count=band.count,
        thin=band.thin,
    )


def _reference_snapshot(ref: ReferenceProjection) -> ReferenceSnapshot:
    tx = ref.transaction
    return ReferenceSnapshot(
        date=tx.date,
        orig_psf=ref.original_psf,
        adj_psf=ref.adjusted_psf,
        area=tx.area,
        floor=tx.floor_range or "-",
        sale_type=tx.sale_type or "-",
        months=ref.months_elapsed,
        rate=ref.rate,
        status=ref.status.value,
    )


def build_client_report(
    analysis: ProjectAnalysis,
    project: ProjectProfile,
    client_name: str = "",
    notes: str = "",
    sections: Optional[ReportSections] = None,
    market_position: Optional[MarketPosition] = None,
    yield_info: Optional[YieldInfo] = None,
    reference: Optional[ReferenceProjection] = None,
    evidence: Optional[List[Transaction]] = None,
    report_id: Optional[str] = None,
    created_at: Optional[str] = None,
) -> ClientReport:
    """
    Serialise a project analysis into a client report snapshot.

    Args:
        analysis: Output of ProjectAnalyzer.analyze
        project: Project profile for the cover
        client_name: Client display name (default "Unnamed Client")
        notes: Free-text advisor notes
        sections: Section toggles
        market_position: Project pricing context
        yield_info: Rental yield context
        reference: Optional projected reference sale
        evidence: Transactions selected as supporting evidence
        report_id: Snapshot id (generated if omitted)
        created_at: ISO timestamp (now if omitted)

    Returns:
        ClientReport
    """
    cma = None
    if analysis.valuation is not None:
        v = analysis.valuation
        cma = CMASnapshot(
            weighted_avg_psf=v.weighted_avg_psf,
            low_psf=v.low_psf,
            high_psf=v.high_psf,
            confidence=v.confidence,
            total_tx=v.total_comparables,
            estimated_value=analysis.estimated_value,
        )

    evidence_rows = sorted(evidence or [], key=lambda t: t.date, reverse=True)[:MAX_EVIDENCE_ROWS]

    return ClientReport(
        id=report_id or uuid.uuid4().hex[:12],
        client_name=client_name.strip() or DEFAULT_CLIENT_NAME,
        project_name=project.name,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
        as_of=analysis.as_of.isoformat(),
        unit=UnitConfig(area=analysis.target_area, floor=analysis.target_floor),
        sections=sections or ReportSections(),
        project=project,
        notes=notes,
        market_position=market_position or MarketPosition(),
        cma=cma,
        reference_tx=_reference_snapshot(reference) if reference else None,
        evidence=[_evidence_row(tx) for tx in evidence_rows],
        yield_info=yield_info or YieldInfo(),
        floor_premium=[_floor_row(b) for b in analysis.floor_bands],
        project_cagr=analysis.project_cagr,
        cagr_low_conf=analysis.cagr.low_conf,
    )
