"""
Project Valuation Engine - Core Business Logic

This module provides the canonical valuation pipeline for one project:
1. Ingestion (raw records -> Transaction)
2. Master filters (beds, years, sale type, tenure, floor)
3. Growth (bucketed project CAGR)
4. Floor premiums
5. Tiered price estimate (3M / 6M / 12M windows)
6. CMA valuation (weighted estimate, band, confidence)
"""

# CMA Engine v1.0
from .cma_engine import (
    DEFAULT_FLOOR_BANDS,
    BestEstimate,
    BreakdownMode,
    CagrResult,
    CMAValuationEngine,
    FloorBand,
    InvestorRow,
    ProjectionResult,
    ReferenceProjection,
    ReferenceStatus,
    ScoredTransaction,
    ScoringParameters,
    Tier,
    TierLevel,
    Transaction,
    TransactionFilters,
    ValuationEstimate,
    best_estimate,
    bucketed_cagr,
    build_tiers,
    filter_transactions,
    floor_premiums,
    investor_breakdown,
    point_cagr,
    project_forward,
    project_reference,
    score_transaction,
    weighted_valuation,
)

# Project Analyzer - Integrated pipeline
from .project_analyzer import ProjectAnalysis, ProjectAnalyzer

# Ingestion Layer
from .ingestion import (
    REJECTION_CODES,
    RejectionRecord,
    TransactionAdapter,
    flatten_ura_response,
    load_transactions,
)

__all__ = [
    # CMA Engine v1.0
    "DEFAULT_FLOOR_BANDS",
    "BestEstimate",
    "BreakdownMode",
    "CagrResult",
    "CMAValuationEngine",
    "FloorBand",
    "InvestorRow",
    "ProjectionResult",
    "ReferenceProjection",
    "ReferenceStatus",
    "ScoredTransaction",
    "ScoringParameters",
    "Tier",
    "TierLevel",
    "Transaction",
    "TransactionFilters",
    "ValuationEstimate",
    "best_estimate",
    "bucketed_cagr",
    "build_tiers",
    "filter_transactions",
    "floor_premiums",
    "investor_breakdown",
    "point_cagr",
    "project_forward",
    "project_reference",
    "score_transaction",
    "weighted_valuation",
    # Project Analyzer
    "ProjectAnalysis",
    "ProjectAnalyzer",
    # Ingestion Layer
    "REJECTION_CODES",
    "RejectionRecord",
    "TransactionAdapter",
    "flatten_ura_response",
    "load_transactions",
]
