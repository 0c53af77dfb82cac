"""
Tests for client report snapshots and PDF rendering
"""

import pytest
from datetime import date
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import ProjectAnalyzer, Transaction
from reporting import (
    DEFAULT_CLIENT_NAME,
    ClientReport,
    ClientReportGenerator,
    ProjectProfile,
    ReportSections,
    YieldInfo,
    build_client_report,
    generate_report,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return date(2024, 6, 15)


@pytest.fixture
def analyzer(reference_date):
    return ProjectAnalyzer(reference_date=reference_date)


@pytest.fixture
def transactions():
    txs = []
    for year, base in ((2021, 1250), (2022, 1300), (2023, 1400), (2024, 1500)):
        for month, floor in ((2, "01-05"), (4, "06-10"), (6, "11-15")):
            txs.append(Transaction(
                date=f"{year}-{month:02d}",
                price=(base + month * 10) * 1000,
                area=1000.0,
                psf=base + month * 10,
                floor_range=floor,
                sale_type="Resale",
            ))
    return txs


@pytest.fixture
def analysis(analyzer, transactions):
    return analyzer.analyze(transactions, target_area=1000, target_floor="11-15")


@pytest.fixture
def project():
    return ProjectProfile(
        name="Parc Vista",
        district="D23",
        segment="OCR",
        tenure="99-yr",
        property_type="Condominium",
    )


@pytest.fixture
def full_report(analyzer, analysis, project, transactions):
    """Snapshot with every section enabled."""
    return build_client_report(
        analysis,
        project=project,
        client_name="J. Tan & Family",
        notes="Owner open to offers.\n\nViewing on request.",
        sections=ReportSections(
            reference_tx=True,
            evidence=True,
            floor_premium=True,
        ),
        yield_info=YieldInfo(gross_yield=2.8, rent_psf=3.4, has_real_rental=True),
        reference=analyzer.project_reference(transactions[0], transactions),
        evidence=transactions,
        report_id="abc123",
        created_at="2024-06-15T09:00:00+00:00",
    )


# =============================================================================
# Snapshot Builder
# =============================================================================

class TestBuildClientReport:

    def test_default_client_name(self, analysis, project):
        report = build_client_report(analysis, project)

        assert report.client_name == DEFAULT_CLIENT_NAME
        assert len(report.id) == 12
        assert report.created_at

    def test_blank_client_name(self, analysis, project):
        assert build_client_report(analysis, project, client_name="  ").client_name == DEFAULT_CLIENT_NAME

    def test_cma_snapshot(self, analysis, project):
        report = build_client_report(analysis, project)

        assert report.cma.weighted_avg_psf == analysis.valuation.weighted_avg_psf
        assert report.cma.low_psf == analysis.valuation.low_psf
        assert report.cma.high_psf == analysis.valuation.high_psf
        assert report.cma.confidence == analysis.valuation.confidence
        assert report.cma.total_tx == 12
        assert report.cma.estimated_value == analysis.estimated_value

    def test_no_valuation(self, analyzer, transactions, project):
        analysis = analyzer.analyze(transactions[:2], target_area=1000)

        assert build_client_report(analysis, project).cma is None

    def test_unit_and_context(self, full_report):
        assert full_report.as_of == "2024-06-15"
        assert full_report.unit.area == 1000
        assert full_report.unit.floor == "11-15"
        assert full_report.project_cagr is not None
        assert [row.range for row in full_report.floor_premium] == ["01-05", "06-10", "11-15"]

    def test_evidence_newest_first(self, full_report):
        dates = [row.date for row in full_report.evidence]

        assert dates[0] == "2024-06"
        assert dates == sorted(dates, reverse=True)

    def test_reference_snapshot(self, full_report):
        ref = full_report.reference_tx

        assert ref.date == "2021-02"
        assert ref.status == "adjusted"
        assert ref.adj_psf > ref.orig_psf

    def test_round_trip(self, full_report):
        restored = ClientReport.from_dict(full_report.to_dict())

        assert restored == full_report


# =============================================================================
# PDF Rendering
# =============================================================================

class TestClientReportGenerator:

    def test_buffer_is_pdf(self, full_report):
        pdf = ClientReportGenerator().generate_to_buffer(full_report)

        assert pdf.startswith(b"%PDF")

    def test_default_sections(self, analysis, project, tmp_path):
        report = build_client_report(analysis, project, report_id="def456")

        result = generate_report(report, output_dir=tmp_path)

        assert result.path == tmp_path / "CMA-def456.pdf"
        assert result.path.exists()
        assert result.sections_included == 4

    def test_all_sections(self, full_report, tmp_path):
        result = ClientReportGenerator(output_dir=tmp_path).generate_report(full_report)

        assert result.sections_included == 7
        assert result.path.read_bytes().startswith(b"%PDF")

    def test_enabled_section_without_data_is_skipped(self, analysis, project, tmp_path):
        report = build_client_report(
            analysis,
            project,
            sections=ReportSections(reference_tx=True, evidence=True),
        )

        result = generate_report(report, output_dir=tmp_path)

        assert result.sections_included == 4

    def test_renders_without_valuation(self, analyzer, transactions, project):
        report = build_client_report(analyzer.analyze(transactions[:1], target_area=1000), project)

        assert ClientReportGenerator().generate_to_buffer(report).startswith(b"%PDF")
