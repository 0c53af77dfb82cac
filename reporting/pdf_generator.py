"""
Client Valuation Report

Renders a saved ClientReport snapshot to PDF. Uses ReportLab for
deterministic PDF generation: the same snapshot always produces the
same document, and nothing is recomputed at render time.

Output Structure:
1. Cover Page
2. Project Overview
3. Market Position
4. Valuation (CMA estimate and band)
5. Reference Transaction
6. Supporting Evidence
7. Rental Yield
8. Floor Premium
9. Notes & Disclaimer

Sections 2-8 are included only when enabled in the snapshot.
"""

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from utils.formatting import format_currency, format_percent, format_psf

from .schemas import ClientReport


# =============================================================================
# Report Generation Result Types
# =============================================================================

@dataclass
class ReportSuccess:
    """Returned when PDF generation succeeds."""
    path: Path
    sections_included: int


# =============================================================================
# Color Palette - Clean, print-friendly style
# =============================================================================

class Palette:
    """
    Print-friendly color palette.
    White background with charcoal text for readability.
    """
    BLACK = colors.Color(0.1, 0.1, 0.1)
    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    SLATE = colors.Color(0.35, 0.38, 0.42)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    PALE_GRAY = colors.Color(0.95, 0.95, 0.95)
    WHITE = colors.white

    ACCENT = colors.Color(0.15, 0.25, 0.4)
    ACCENT_LIGHT = colors.Color(0.92, 0.94, 0.97)

    WARNING = colors.Color(0.5, 0.4, 0.15)
    WARNING_LIGHT = colors.Color(0.98, 0.96, 0.9)


# =============================================================================
# Style Configuration
# =============================================================================

def get_report_styles() -> dict:
    """
    Create paragraph styles for the client valuation report.
    Returns a StyleSheet with custom styles for each document element.
    """
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='CoverBrand',
        parent=styles['Normal'],
        fontSize=11,
        leading=14,
        textColor=Palette.BLACK,
        alignment=TA_LEFT,
        fontName='Helvetica',
        letterSpacing=1.5,
    ))

    styles.add(ParagraphStyle(
        name='CoverTitle',
        parent=styles['Normal'],
        fontSize=22,
        leading=28,
        textColor=Palette.CHARCOAL,
        alignment=TA_LEFT,
        fontName='Helvetica-Bold',
        spaceAfter=10*mm,
    ))

    styles.add(ParagraphStyle(
        name='CoverSubtitle',
        parent=styles['Normal'],
        fontSize=11,
        leading=15,
        textColor=Palette.SLATE,
        alignment=TA_LEFT,
        fontName='Helvetica',
        spaceAfter=3*mm,
    ))

    styles.add(ParagraphStyle(
        name='SectionTitle',
        parent=styles['Normal'],
        fontSize=14,
        leading=18,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica-Bold',
        spaceBefore=22,
        spaceAfter=14,
    ))

    styles.add(ParagraphStyle(
        name='SubsectionTitle',
        parent=styles['Normal'],
        fontSize=11,
        leading=14,
        textColor=Palette.SLATE,
        fontName='Helvetica-Bold',
        spaceBefore=14,
        spaceAfter=8,
    ))

    styles['BodyText'].fontSize = 9.5
    styles['BodyText'].leading = 14.25
    styles['BodyText'].textColor = Palette.CHARCOAL
    styles['BodyText'].spaceAfter = 6
    styles['BodyText'].alignment = TA_JUSTIFY
    styles['BodyText'].fontName = 'Helvetica'

    styles.add(ParagraphStyle(
        name='SmallText',
        parent=styles['Normal'],
        fontSize=8,
        leading=12,
        textColor=Palette.GRAY,
        fontName='Helvetica',
        spaceAfter=4,
    ))

    styles.add(ParagraphStyle(
        name='Disclaimer',
        parent=styles['Normal'],
        fontSize=7.5,
        leading=11.25,
        textColor=Palette.GRAY,
        alignment=TA_JUSTIFY,
        fontName='Helvetica',
        spaceBefore=14,
        spaceAfter=6,
    ))

    styles.add(ParagraphStyle(
        name='MetricValue',
        parent=styles['Normal'],
        fontSize=18,
        leading=22,
        textColor=Palette.ACCENT,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold',
    ))

    styles.add(ParagraphStyle(
        name='MetricLabel',
        parent=styles['Normal'],
        fontSize=8,
        leading=10,
        textColor=Palette.SLATE,
        alignment=TA_CENTER,
        fontName='Helvetica',
    ))

    return styles


def _grid_style(header_bg=Palette.CHARCOAL) -> TableStyle:
    """Standard data table: dark header row, light grid, zebra rows."""
    return TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 8.5),
        ('BACKGROUND', (0, 0), (-1, 0), header_bg),
        ('TEXTCOLOR', (0, 0), (-1, 0), Palette.WHITE),
        ('TEXTCOLOR', (0, 1), (-1, -1), Palette.CHARCOAL),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('ALIGN', (0, 0), (0, -1), 'LEFT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, Palette.LIGHT_GRAY),
        ('TOPPADDING', (0, 0), (-1, -1), 2.5*mm),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2.5*mm),
        ('LEFTPADDING', (0, 0), (-1, -1), 2*mm),
        ('RIGHTPADDING', (0, 0), (-1, -1), 2*mm),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [Palette.WHITE, Palette.PALE_GRAY]),
    ])


# =============================================================================
# Report Generator Class
# =============================================================================

class ClientReportGenerator:
    """
    Generates client valuation report PDFs.

    Usage:
        generator = ClientReportGenerator()
        result = generator.generate_report(report)
    """

    PAGE_WIDTH, PAGE_HEIGHT = A4
    MARGIN_LEFT = 18*mm
    MARGIN_RIGHT = 18*mm
    MARGIN_TOP = 18*mm
    MARGIN_BOTTOM = 22*mm

    OUTPUT_DIR = Path("reports")

    BRAND = "CMA VALUATION"

    def __init__(self, output_dir: Optional[Path] = None):
        self.styles = get_report_styles()
        if output_dir is not None:
            self.OUTPUT_DIR = Path(output_dir)

    @property
    def content_width(self) -> float:
        return self.PAGE_WIDTH - self.MARGIN_LEFT - self.MARGIN_RIGHT

    def generate_report(self, report: ClientReport) -> ReportSuccess:
        """
        Generate a client report PDF and write it to OUTPUT_DIR.

        Args:
            report: Saved client report snapshot

        Returns:
            ReportSuccess with the written path
        """
        self.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        output_path = self.OUTPUT_DIR / f"CMA-{report.id}.pdf"

        buffer = BytesIO()
        included = self._build_document(report, buffer)
        output_path.write_bytes(buffer.getvalue())

        return ReportSuccess(path=output_path, sections_included=included)

    def generate_to_buffer(self, report: ClientReport) -> bytes:
        """Generate PDF and return as bytes (for testing or streaming)."""
        buffer = BytesIO()
        self._build_document(report, buffer)
        return buffer.getvalue()

    def _build_document(self, report: ClientReport, buffer: BytesIO) -> int:
        """Build the complete PDF document. Returns the number of body sections."""
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            topMargin=self.MARGIN_TOP,
            bottomMargin=self.MARGIN_BOTTOM,
            title=f"Valuation Report - {report.project_name}",
            author=self.BRAND.title(),
            subject="Comparative Market Analysis",
        )

        sections = report.sections
        builders = [
            (sections.overview, self._build_overview),
            (sections.market_position, self._build_market_position),
            (sections.valuation, self._build_valuation),
            (sections.reference_tx and report.reference_tx is not None, self._build_reference),
            (sections.evidence and bool(report.evidence), self._build_evidence),
            (sections.yield_info, self._build_yield),
            (sections.floor_premium and bool(report.floor_premium), self._build_floor_premium),
        ]

        story = self._build_cover_page(report)
        story.append(PageBreak())

        included = 0
        for enabled, builder in builders:
            if enabled:
                story.extend(builder(report))
                included += 1

        story.extend(self._build_notes_disclaimer(report))

        doc.build(
            story,
            onFirstPage=self._draw_cover_page,
            onLaterPages=self._draw_page_frame,
        )
        return included

    # =========================================================================
    # Page Drawing Functions
    # =========================================================================

    def _draw_cover_page(self, canvas_obj: canvas.Canvas, doc):
        """Cover page has no header/footer."""
        pass

    def _draw_page_frame(self, canvas_obj: canvas.Canvas, doc):
        """Draw footer on content pages - wordmark left, page number right."""
        canvas_obj.saveState()
        canvas_obj.setFont('Helvetica', 7)
        canvas_obj.setFillColor(Palette.GRAY)
        canvas_obj.drawString(
            self.MARGIN_LEFT,
            self.MARGIN_BOTTOM - 10*mm,
            self.BRAND,
        )
        canvas_obj.drawRightString(
            self.PAGE_WIDTH - self.MARGIN_RIGHT,
            self.MARGIN_BOTTOM - 10*mm,
            f"{doc.page}",
        )
        canvas_obj.restoreState()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _format_date_display(self, date_str: str) -> str:
        """Format date as 'DD Month YYYY'."""
        if not date_str:
            return datetime.now().strftime("%d %B %Y")
        try:
            return datetime.fromisoformat(date_str).strftime("%d %B %Y")
        except (ValueError, TypeError):
            return date_str

    def _key_value_table(self, rows: list) -> Table:
        table = Table(rows, colWidths=[self.content_width * 0.4, self.content_width * 0.6])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('TEXTCOLOR', (0, 0), (0, -1), Palette.SLATE),
            ('TEXTCOLOR', (1, 0), (1, -1), Palette.CHARCOAL),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LINEBELOW', (0, 0), (-1, -1), 0.5, Palette.LIGHT_GRAY),
            ('TOPPADDING', (0, 0), (-1, -1), 2.5*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2.5*mm),
        ]))
        return table

    def _metric_row(self, metrics: list) -> Table:
        """A row of large headline figures with labels beneath."""
        values = [Paragraph(escape(value), self.styles['MetricValue']) for value, _ in metrics]
        labels = [Paragraph(escape(label), self.styles['MetricLabel']) for _, label in metrics]
        width = self.content_width / len(metrics)
        table = Table([values, labels], colWidths=[width] * len(metrics))
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), Palette.ACCENT_LIGHT),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, 0), 4*mm),
            ('BOTTOMPADDING', (0, -1), (-1, -1), 4*mm),
        ]))
        return table

    # =========================================================================
    # Cover Page
    # =========================================================================

    def _build_cover_page(self, report: ClientReport) -> list:
        elements = []

        elements.append(Paragraph(self.BRAND, self.styles['CoverBrand']))
        elements.append(Spacer(1, 50*mm))

        elements.append(Paragraph(
            f"{escape(report.project_name)} Valuation Report",
            self.styles['CoverTitle'],
        ))
        elements.append(Spacer(1, 15*mm))

        elements.append(Paragraph(
            f"Prepared for: {escape(report.client_name)}",
            self.styles['CoverSubtitle'],
        ))
        unit = f"{report.unit.area:,.0f} sqft"
        if report.unit.floor:
            unit += f", floor {escape(report.unit.floor)}"
        elements.append(Paragraph(f"Unit: {unit}", self.styles['CoverSubtitle']))
        elements.append(Paragraph(
            f"Valuation date: {self._format_date_display(report.as_of)}",
            self.styles['CoverSubtitle'],
        ))
        elements.append(Paragraph(f"Reference: {escape(report.id)}", self.styles['CoverSubtitle']))

        return elements

    # =========================================================================
    # Body Sections
    # =========================================================================

    def _build_overview(self, report: ClientReport) -> list:
        project = report.project
        rows = [["Project", project.name]]
        if project.district:
            rows.append(["District", project.district])
        if project.segment:
            rows.append(["Market segment", project.segment])
        if project.tenure:
            rows.append(["Tenure", project.tenure])
        if project.property_type:
            rows.append(["Property type", project.property_type])

        cagr = format_percent(report.project_cagr, signed=True)
        if report.project_cagr is not None and report.cagr_low_conf:
            cagr += " (low confidence)"
        rows.append(["Project CAGR", cagr])

        return [
            Paragraph("Project Overview", self.styles['SectionTitle']),
            self._key_value_table(rows),
        ]

    def _build_market_position(self, report: ClientReport) -> list:
        mp = report.market_position
        period = f" ({mp.psf_period})" if mp.psf_period else ""
        rows = [
            [f"Average PSF{period}", format_psf(mp.avg_psf)],
            [f"Median PSF{period}", format_psf(mp.med_psf)],
            ["District average PSF", format_psf(mp.district_avg_psf)],
        ]
        return [
            Paragraph("Market Position", self.styles['SectionTitle']),
            self._key_value_table(rows),
        ]

    def _build_valuation(self, report: ClientReport) -> list:
        elements = [Paragraph("Valuation", self.styles['SectionTitle'])]

        cma = report.cma
        if cma is None:
            elements.append(Paragraph(
                "Insufficient comparable transactions for a weighted estimate.",
                self.styles['BodyText'],
            ))
            return elements

        elements.append(self._metric_row([
            (format_psf(cma.weighted_avg_psf), "Estimated PSF"),
            (format_currency(cma.estimated_value) if cma.estimated_value else "-", "Estimated value"),
            (f"{cma.confidence}/100", "Confidence"),
        ]))
        elements.append(Spacer(1, 6*mm))
        elements.append(self._key_value_table([
            ["Value band (PSF)", f"{format_psf(cma.low_psf)} to {format_psf(cma.high_psf)}"],
            ["Comparables used", f"{cma.total_tx}"],
        ]))
        elements.append(Paragraph(
            "Comparables are weighted by recency, size similarity and floor similarity, "
            "time-adjusted at the project growth rate and adjusted for floor premium.",
            self.styles['SmallText'],
        ))
        return elements

    def _build_reference(self, report: ClientReport) -> list:
        ref = report.reference_tx
        rows = [
            ["Transaction date", ref.date],
            ["Unit", f"{ref.area:,.0f} sqft, floor {ref.floor}"],
            ["Sale type", ref.sale_type],
            ["Transacted PSF", format_psf(ref.orig_psf)],
            ["Months elapsed", f"{ref.months}"],
            ["Growth rate applied", format_percent(ref.rate, signed=True)],
            ["Projected PSF today", format_psf(ref.adj_psf)],
        ]
        elements = [
            Paragraph("Reference Transaction", self.styles['SectionTitle']),
            self._key_value_table(rows),
        ]
        if ref.status == "insufficient_data":
            elements.append(Paragraph(
                "Not enough project history to project this sale forward; "
                "the transacted PSF is shown unchanged.",
                self.styles['SmallText'],
            ))
        return elements

    def _build_evidence(self, report: ClientReport) -> list:
        data = [["Date", "Floor", "Area (sqft)", "Price", "PSF", "Sale type"]]
        for row in report.evidence:
            data.append([
                row.date,
                row.floor,
                f"{row.area:,.0f}",
                format_currency(row.price),
                format_currency(row.psf),
                row.sale_type,
            ])
        table = Table(data, repeatRows=1)
        table.setStyle(_grid_style())
        return [
            Paragraph("Supporting Evidence", self.styles['SectionTitle']),
            table,
        ]

    def _build_yield(self, report: ClientReport) -> list:
        info = report.yield_info
        rows = [["Gross yield", format_percent(info.gross_yield)]]
        if info.rent_psf:
            rows.append(["Rent PSF (monthly)", f"${info.rent_psf:,.2f}"])
        if info.avg_rent:
            rows.append(["Average monthly rent", format_currency(info.avg_rent)])
        source = "Rental contracts" if info.has_real_rental else "Market estimate"
        rows.append(["Source", source])
        return [
            Paragraph("Rental Yield", self.styles['SectionTitle']),
            self._key_value_table(rows),
        ]

    def _build_floor_premium(self, report: ClientReport) -> list:
        data = [["Floor band", "Avg PSF", "Premium", "Transactions"]]
        for row in report.floor_premium:
            count = f"{row.count}*" if row.thin else f"{row.count}"
            data.append([
                row.range,
                format_currency(row.psf),
                format_percent(row.premium, signed=True),
                count,
            ])
        table = Table(data, repeatRows=1)
        table.setStyle(_grid_style(header_bg=Palette.ACCENT))
        elements = [
            Paragraph("Floor Premium", self.styles['SectionTitle']),
            table,
        ]
        if any(row.thin for row in report.floor_premium):
            elements.append(Paragraph(
                "* Fewer than 3 transactions; treat the premium as indicative.",
                self.styles['SmallText'],
            ))
        return elements

    def _build_notes_disclaimer(self, report: ClientReport) -> list:
        elements = []
        if report.notes:
            elements.append(Paragraph("Notes", self.styles['SectionTitle']))
            for para in report.notes.split("\n\n"):
                elements.append(Paragraph(escape(para.strip()), self.styles['BodyText']))

        elements.append(Paragraph(
            "This report is an indicative comparative market analysis based on recorded "
            "transactions. It is not a formal valuation and should not be relied on as one.",
            self.styles['Disclaimer'],
        ))
        elements.append(Paragraph(
            f"Generated {self._format_date_display(report.created_at[:10])}.",
            self.styles['Disclaimer'],
        ))
        return elements


# =============================================================================
# Convenience Function
# =============================================================================

def generate_report(report: ClientReport, output_dir: Optional[Path] = None) -> ReportSuccess:
    """
    Generate a client report PDF.

    Example:
        from reporting import generate_report

        result = generate_report(report)
        print(f"Report generated: {result.path}")
    """
    generator = ClientReportGenerator(output_dir=output_dir)
    return generator.generate_report(report)
