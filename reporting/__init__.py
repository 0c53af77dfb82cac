"""
Reporting module for the valuation engine.

Builds client report snapshots from a project analysis and renders
them to PDF.

Usage:
    from core import ProjectAnalyzer
    from reporting import ProjectProfile, build_client_report, generate_report

    analysis = ProjectAnalyzer().analyze(transactions, target_area=1000)
    report = build_client_report(analysis, ProjectProfile(name="Parc Vista"))
    result = generate_report(report)
"""

from .pdf_generator import ClientReportGenerator, ReportSuccess, generate_report
from .schemas import (
    DEFAULT_CLIENT_NAME,
    ClientReport,
    CMASnapshot,
    EvidenceRow,
    FloorPremiumRow,
    MarketPosition,
    ProjectProfile,
    ReferenceSnapshot,
    ReportSections,
    UnitConfig,
    YieldInfo,
    build_client_report,
)

__all__ = [
    # Generator
    "ClientReportGenerator",
    "ReportSuccess",
    "generate_report",
    # Schemas
    "DEFAULT_CLIENT_NAME",
    "ClientReport",
    "CMASnapshot",
    "EvidenceRow",
    "FloorPremiumRow",
    "MarketPosition",
    "ProjectProfile",
    "ReferenceSnapshot",
    "ReportSections",
    "UnitConfig",
    "YieldInfo",
    "build_client_report",
]
