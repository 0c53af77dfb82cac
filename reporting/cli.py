#!/usr/bin/env python3
"""
CLI for project valuation and client report generation.

Usage:
    python -m reporting.cli cagr <transactions_json>
    python -m reporting.cli value <transactions_json> --area 1000 [--floor 11-15]
    python -m reporting.cli report <transactions_json> --area 1000 --project "Parc Vista"

Examples:
    # Project CAGR as of a fixed date
    python -m reporting.cli cagr data/parc_vista.json --as-of 2024-06-01

    # Full valuation for a 1,000 sqft unit on floors 11-15
    python -m reporting.cli value data/parc_vista.json --area 1000 --floor 11-15

    # Client PDF
    python -m reporting.cli report data/parc_vista.json --area 1000 \\
        --project "Parc Vista" --client "J. Tan"
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from core import ProjectAnalyzer, TransactionFilters, bucketed_cagr, load_transactions
from utils.config import Config
from utils.formatting import format_currency, format_percent, format_psf

from .pdf_generator import generate_report
from .schemas import ProjectProfile, ReportSections, YieldInfo, build_client_report


def _load(path_str: str):
    """Read a transactions JSON file. Raises FileNotFoundError / JSONDecodeError."""
    input_path = Path(path_str)
    if not input_path.exists():
        raise FileNotFoundError(f"File not found: {input_path}")
    with open(input_path, "r") as f:
        data = json.load(f)
    return load_transactions(data)


def _as_of(args) -> date:
    return date.fromisoformat(args.as_of) if args.as_of else date.today()


def _filters(args) -> TransactionFilters:
    return TransactionFilters(
        beds=args.beds,
        year_from=args.year_from,
        year_to=args.year_to,
        sale_type=args.sale_type,
        tenure=args.tenure,
    )


def _analyze(args, config: Config):
    transactions = _load(args.transactions_file)
    analyzer = ProjectAnalyzer(
        reference_date=_as_of(args),
        parameters=config.scoring_parameters(),
    )
    sizes = [float(s) for s in args.sizes.split(",")] if args.sizes else ()
    return analyzer.analyze(
        transactions,
        target_area=args.area,
        target_floor=args.floor,
        filters=_filters(args),
        project_sizes=sizes,
    )


def cmd_cagr(args, config: Config):
    """Print the bucketed project CAGR."""
    transactions = _load(args.transactions_file)
    result = bucketed_cagr(transactions, args.start_year, args.end_year)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"Transactions: {result.total_n}")
    for row in result.annual_avg:
        print(f"  {row.year}: {format_psf(row.avg)} (n={row.n})")
    flag = " (low confidence)" if result.low_conf else ""
    print(f"CAGR: {format_percent(result.cagr, decimals=2, signed=True)}{flag}")
    return 0


def cmd_value(args, config: Config):
    """Print the tiered estimate and CMA valuation for a target unit."""
    analysis = _analyze(args, config)

    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2))
        return 0

    print(f"As of: {analysis.as_of.isoformat()}")
    print(f"Transactions: {analysis.transaction_count}")
    print(f"Project CAGR: {format_percent(analysis.project_cagr, decimals=2, signed=True)}")

    if analysis.best is not None:
        best = analysis.best
        print(f"Best estimate: {format_psf(best.psf)} ({best.tier.label}, {best.period_label})")
        if analysis.best_projection is not None:
            print(f"  Projected today: {format_psf(analysis.best_projection.adjusted_psf)}")
    else:
        print("Best estimate: -")

    v = analysis.valuation
    if v is None:
        print("CMA estimate: insufficient comparables")
    else:
        print(f"CMA estimate: {format_psf(v.weighted_avg_psf)} "
              f"(band {format_psf(v.low_psf)} to {format_psf(v.high_psf)})")
        print(f"  Value: {format_currency(analysis.estimated_value)}")
        print(f"  Confidence: {v.confidence}/100 from {v.total_comparables} comparables")
    return 0


def cmd_report(args, config: Config):
    """Generate a client PDF report."""
    analysis = _analyze(args, config)

    report = build_client_report(
        analysis,
        project=ProjectProfile(name=args.project, district=args.district or ""),
        client_name=args.client or "",
        notes=args.notes or "",
        sections=ReportSections(evidence=True, floor_premium=True),
        yield_info=YieldInfo(gross_yield=config.default_yield),
        evidence=analysis.transactions,
    )

    print(f"Generating report for: {report.client_name}")
    result = generate_report(report, output_dir=Path(config.reports_dir))
    print(f"Report generated: {result.path}")
    return 0


def _add_valuation_args(parser):
    parser.add_argument("--area", type=float, required=True, help="Target unit area (sqft)")
    parser.add_argument("--floor", help="Target floor band, e.g. 11-15")
    parser.add_argument("--sizes", help="Comma-separated unit sizes offered by the project")
    parser.add_argument("--beds", help="Bedroom filter, e.g. 3")
    parser.add_argument("--year-from", type=int, help="Earliest sale year")
    parser.add_argument("--year-to", type=int, help="Latest sale year")
    parser.add_argument("--sale-type", help="New Sale, Sub Sale or Resale")
    parser.add_argument("--tenure", help="Freehold, 999-yr or Leasehold")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Project valuation engine - CAGR, CMA valuation and client reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input:
    A JSON file holding a URA API response, a {"transactions": [...]} wrapper,
    or a plain list of transaction records.

Output:
    Reports are saved to: $REPORTS_DIR/CMA-<id>.pdf
        """,
    )
    parser.add_argument("--as-of", help="Valuation date (YYYY-MM-DD, default today)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")

    subparsers = parser.add_subparsers(dest="command", required=True)

    cagr_parser = subparsers.add_parser("cagr", help="Bucketed project CAGR")
    cagr_parser.add_argument("transactions_file", help="Path to transactions JSON")
    cagr_parser.add_argument("--start-year", type=int)
    cagr_parser.add_argument("--end-year", type=int)
    cagr_parser.set_defaults(func=cmd_cagr)

    value_parser = subparsers.add_parser("value", help="Tiered estimate and CMA valuation")
    value_parser.add_argument("transactions_file", help="Path to transactions JSON")
    _add_valuation_args(value_parser)
    value_parser.set_defaults(func=cmd_value)

    report_parser = subparsers.add_parser("report", help="Generate a client PDF report")
    report_parser.add_argument("transactions_file", help="Path to transactions JSON")
    _add_valuation_args(report_parser)
    report_parser.add_argument("--project", required=True, help="Project name")
    report_parser.add_argument("--district", help="District label")
    report_parser.add_argument("--client", help="Client name")
    report_parser.add_argument("--notes", help="Advisor notes")
    report_parser.set_defaults(func=cmd_report)

    args = parser.parse_args(argv)

    config = Config.load()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args, config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except (KeyError, ValueError) as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
