"""
FastAPI application for the valuation engine.

JSON API over the CMA engine: growth, floor premiums, tiered estimate,
CMA valuation, reference projection, investor breakdown and client
report generation. Every endpoint is stateless; transactions arrive in
the request body.

Production deployment configuration via environment variables.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from core import (
    DEFAULT_FLOOR_BANDS,
    BreakdownMode,
    ProjectAnalyzer,
    Transaction,
    TransactionAdapter,
    TransactionFilters,
    bucketed_cagr,
    filter_transactions,
    floor_premiums,
    investor_breakdown,
)
from core.cma_engine import __version__ as ENGINE_VERSION
from core.cma_engine import thin_bands
from reporting import (
    ClientReportGenerator,
    MarketPosition,
    ProjectProfile,
    ReportSections,
    YieldInfo,
    build_client_report,
)
from utils.config import Config


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration - locked down for production
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]

# Debug mode - never enabled in production
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true" and not IS_PRODUCTION

API_VERSION = "1.0.0"


# =============================================================================
# API Request/Response Models
# =============================================================================

class TransactionInput(BaseModel):
    """One project transaction in canonical form."""
    date: str  # "YYYY-MM"
    area: float  # sqft
    price: Optional[float] = None
    psf: Optional[float] = None
    floor_range: Optional[str] = None
    floor_mid: Optional[float] = None
    sale_type: Optional[str] = None
    tenure: Optional[str] = None
    beds: Optional[str] = None
    project: str = ""


class FiltersInput(BaseModel):
    """Master filters; unset fields keep all transactions."""
    beds: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    sale_type: Optional[str] = None
    tenure: Optional[str] = None
    floor: Optional[str] = None

    def to_filters(self) -> TransactionFilters:
        return TransactionFilters(**self.model_dump())


class TransactionsRequest(BaseModel):
    transactions: List[TransactionInput]
    filters: Optional[FiltersInput] = None
    as_of: Optional[date] = None


class CagrRequest(TransactionsRequest):
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class FloorPremiumRequest(TransactionsRequest):
    floor_bands: List[str] = list(DEFAULT_FLOOR_BANDS)


class AnalysisRequest(TransactionsRequest):
    """Target unit plus project context for estimate/valuation/analysis."""
    target_area: float
    target_floor: Optional[str] = None
    project_sizes: List[float] = []
    floor_bands: List[str] = list(DEFAULT_FLOOR_BANDS)


class ReferenceRequest(TransactionsRequest):
    reference: TransactionInput


class InvestorRequest(TransactionsRequest):
    mode: BreakdownMode = BreakdownMode.OVERALL
    project_sizes: List[float] = []
    floor_bands: List[str] = list(DEFAULT_FLOOR_BANDS)
    gross_yield: Optional[float] = None
    rent_psf: Optional[float] = None


class ProjectInput(BaseModel):
    name: str
    district: str = ""
    segment: str = ""
    tenure: str = ""
    property_type: str = ""


class SectionsInput(BaseModel):
    overview: bool = True
    market_position: bool = True
    valuation: bool = True
    reference_tx: bool = False
    evidence: bool = False
    yield_info: bool = True
    floor_premium: bool = False


class MarketPositionInput(BaseModel):
    avg_psf: Optional[int] = None
    med_psf: Optional[int] = None
    psf_period: str = ""
    district_avg_psf: Optional[int] = None


class YieldInput(BaseModel):
    gross_yield: Optional[float] = None
    rent_psf: Optional[float] = None
    avg_rent: Optional[float] = None
    has_real_rental: bool = False


class ClientReportRequest(AnalysisRequest):
    """Request body for client report generation."""
    project: ProjectInput
    client_name: str = ""
    notes: str = ""
    sections: SectionsInput = SectionsInput()
    market_position: MarketPositionInput = MarketPositionInput()
    yield_info: YieldInput = YieldInput()
    reference: Optional[TransactionInput] = None


# =============================================================================
# Request Helpers
# =============================================================================

def to_transactions(inputs: List[TransactionInput]) -> List[Transaction]:
    """Normalise request records, dropping (and logging) invalid ones."""
    adapter = TransactionAdapter(source_id="api")
    return adapter.normalise_all([t.model_dump() for t in inputs])


def to_reference(reference: TransactionInput) -> Transaction:
    """Normalise the reference sale; a bad record is a client error."""
    txs = to_transactions([reference])
    if not txs:
        raise HTTPException(status_code=422, detail="Invalid reference transaction")
    return txs[0]


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    reports_dir = Path(config.reports_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Deferred startup tasks. Runs after healthcheck is ready."""
        reports_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Valuation engine started (reports in %s)", reports_dir)
        yield

    app = FastAPI(
        title="Project Valuation Engine",
        description="CMA valuation, growth and floor-premium analytics for residential projects",
        version=API_VERSION,
        # Production settings: disable docs/redoc for private deployment
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=DEBUG_MODE or config.debug,
        lifespan=lifespan,
    )

    # ==========================================================================
    # Healthcheck endpoints are registered first and perform no IO.
    # ==========================================================================
    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Secondary health endpoint. No dependencies, no IO."""
        return {"status": "healthy"}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # Generated PDFs (directory created in lifespan)
    app.mount("/reports", StaticFiles(directory=reports_dir, check_dir=False), name="reports")

    def analyzer_for(as_of: Optional[date]) -> ProjectAnalyzer:
        return ProjectAnalyzer(
            reference_date=as_of,
            parameters=config.scoring_parameters(),
        )

    def filtered(request_data: TransactionsRequest) -> List[Transaction]:
        filters = request_data.filters.to_filters() if request_data.filters else None
        return filter_transactions(to_transactions(request_data.transactions), filters)

    def analyze(request_data: AnalysisRequest):
        return analyzer_for(request_data.as_of).analyze(
            to_transactions(request_data.transactions),
            target_area=request_data.target_area,
            target_floor=request_data.target_floor,
            filters=request_data.filters.to_filters() if request_data.filters else None,
            project_sizes=request_data.project_sizes,
            floor_bands=request_data.floor_bands,
        )

    # ==========================================================================
    # Engine Endpoints
    # ==========================================================================

    @app.post("/api/cagr")
    async def cagr_endpoint(request_data: CagrRequest):
        """Bucketed project CAGR with per-year averages."""
        result = bucketed_cagr(filtered(request_data), request_data.start_year, request_data.end_year)
        return result.to_dict()

    @app.post("/api/floor-premiums")
    async def floor_premiums_endpoint(request_data: FloorPremiumRequest):
        """Average PSF and premium per floor band."""
        bands = floor_premiums(filtered(request_data), request_data.floor_bands)
        return {
            "bands": [b.to_dict() for b in bands],
            "thin_bands": thin_bands(bands),
        }

    @app.post("/api/estimate")
    async def estimate_endpoint(request_data: AnalysisRequest):
        """Tiered rolling-window estimate and best estimate."""
        analysis = analyze(request_data)
        return {
            "as_of": analysis.as_of.isoformat(),
            "size_target": analysis.size_target,
            "tiers": [t.to_dict() for t in analysis.tiers],
            "best_estimate": analysis.best.to_dict() if analysis.best else None,
            "best_estimate_value": analysis.best_estimate_value,
            "best_projection": analysis.best_projection.to_dict() if analysis.best_projection else None,
            "project_cagr": analysis.project_cagr,
        }

    @app.post("/api/valuation")
    async def valuation_endpoint(request_data: AnalysisRequest):
        """Weighted CMA valuation for the target unit."""
        analysis = analyze(request_data)
        return {
            "as_of": analysis.as_of.isoformat(),
            "transaction_count": analysis.transaction_count,
            "valuation": analysis.valuation.to_dict() if analysis.valuation else None,
            "estimated_value": analysis.estimated_value,
        }

    @app.post("/api/reference-projection")
    async def reference_endpoint(request_data: ReferenceRequest):
        """Project a reference sale to the valuation date at the project CAGR."""
        reference = to_reference(request_data.reference)
        projection = analyzer_for(request_data.as_of).project_reference(
            reference, filtered(request_data)
        )
        return projection.to_dict()

    @app.post("/api/analysis")
    async def analysis_endpoint(request_data: AnalysisRequest):
        """Full project analysis from one filtered transaction set."""
        return analyze(request_data).to_dict()

    @app.post("/api/investor-breakdown")
    async def investor_endpoint(request_data: InvestorRequest):
        """CAGR and total-return rows sliced by size, floor or bedrooms."""
        rows = investor_breakdown(
            filtered(request_data),
            mode=request_data.mode,
            project_sizes=request_data.project_sizes,
            floor_bands=request_data.floor_bands,
            gross_yield=request_data.gross_yield or config.default_yield,
            rent_psf=request_data.rent_psf,
        )
        return {
            "mode": request_data.mode.value,
            "rows": [row.to_dict() for row in rows],
        }

    # ==========================================================================
    # Client Reports
    # ==========================================================================

    @app.post("/api/reports")
    async def report_endpoint(request_data: ClientReportRequest):
        """
        Build a client report snapshot and render it to PDF.

        Returns:
            - success: true with pdf_url, filename and the saved snapshot
        """
        analysis = analyze(request_data)

        reference = None
        if request_data.reference is not None:
            reference = analyzer_for(request_data.as_of).project_reference(
                to_reference(request_data.reference), analysis.transactions
            )

        yield_data = request_data.yield_info.model_dump()
        if yield_data["gross_yield"] is None:
            yield_data["gross_yield"] = config.default_yield

        report = build_client_report(
            analysis,
            project=ProjectProfile(**request_data.project.model_dump()),
            client_name=request_data.client_name,
            notes=request_data.notes,
            sections=ReportSections(**request_data.sections.model_dump()),
            market_position=MarketPosition(**request_data.market_position.model_dump()),
            yield_info=YieldInfo(**yield_data),
            reference=reference,
            evidence=analysis.transactions,
        )

        result = ClientReportGenerator(output_dir=reports_dir).generate_report(report)
        filename = result.path.name
        logger.info("Generated client report %s for %s", report.id, report.project_name)

        return JSONResponse({
            "success": True,
            "pdf_url": f"/reports/{filename}",
            "filename": filename,
            "report": report.to_dict(),
        })

    @app.get("/api/health")
    async def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "engine_version": ENGINE_VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    return app


# Create app instance for uvicorn
app = create_app()
