"""
SWIR Command Line Interface (CLI)
=================================

Generate the report in one shot:

    python -m swir.cli repdata_data_StormData.csv.bz2 --out-dir figures

Options add a DOCX report (--docx) and CSV/JSON exports of the ranked tables
(--export). The input file is never modified.
"""

from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .aggregate import TOP_N
from .loader import LoadError
from .models import AggregatedEventStat
from .pipeline import EXPORT_FORMATS, run_report
from .report import ReportError
from .tables import pivot_stats

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _positive_int(text: str) -> int:
    n = int(text)
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="swir",
        description="Rank severe weather event types by health and economic impact.",
    )
    ap.add_argument("path", help="Path to the storm data table (.csv, .csv.bz2, .xlsx, ...)")
    ap.add_argument("--out-dir", default="figures", help="Directory for charts and exports (default: figures)")
    ap.add_argument("--top", type=_positive_int, default=TOP_N, help=f"Event types per chart (default: {TOP_N})")
    ap.add_argument("--docx", default=None, help="Also write a DOCX report to this path")
    ap.add_argument("--export", choices=EXPORT_FORMATS, default=None, help="Also export ranked tables")
    verbosity = ap.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the SWIR CLI.

    1) Load dataset
    2) Aggregate and render both charts
    3) Print the ranked tables
    """
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)

    print("Loading dataset...")
    try:
        result = run_report(
            args.path,
            args.out_dir,
            top_n=args.top,
            docx_path=args.docx,
            export=args.export,
        )
    except (LoadError, ReportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    s = result.summary
    print(f"Loaded {s.n_records} records ({s.n_event_types} distinct event types).")

    print(f"\nTop {args.top} event types by fatalities + injuries:")
    _print_rows(result.health_stats)
    print(f"\nTop {args.top} event types by property + crop damage (US$):")
    _print_rows(result.economic_stats)

    print("")
    print(f"Chart written to {result.health_chart_path}")
    print(f"Chart written to {result.economic_chart_path}")
    for name, path in result.exports.items():
        print(f"Exported {name} table to {path}")
    if result.docx_path:
        print(f"Report written to {result.docx_path}")
    return 0


def _print_rows(stats: List[AggregatedEventStat]) -> None:
    wide = pivot_stats(stats)
    kinds = [c for c in wide.columns if c != "total"]
    for rank, (evtype, row) in enumerate(wide.iterrows(), start=1):
        parts = " ".join(f"{k}={row[k]:,.0f}" for k in kinds)
        print(f"[{rank:>2}] {evtype} | {parts} total={row['total']:,.0f}")


if __name__ == "__main__":
    sys.exit(main())
