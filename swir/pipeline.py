"""
Report pipeline
===============

The whole report is one pass of plain function composition:

1) load_records(path)          -> list of WeatherRecord (read-only)
2) summarize_records(records)  -> DatasetSummary
3) aggregate_health(records)   -> ranked AggregatedEventStat rows
   aggregate_economic(records) -> ranked AggregatedEventStat rows
4) plot_grouped_barh(...)      -> one chart per aggregator
5) optional: DOCX report, CSV/JSON exports of both stat tables

Nothing is kept between runs; a failure at any step aborts the run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import os

from .aggregate import (
    TOP_N,
    DatasetSummary,
    aggregate_economic,
    aggregate_health,
    summarize_records,
)
from .loader import ColumnMap, load_records
from .models import AggregatedEventStat
from .report import (
    ChartConfig,
    DatasetCitation,
    ReportConfig,
    economic_chart_config,
    generate_docx_report,
    health_chart_config,
    plot_grouped_barh,
)
from .tables import export_stats_csv, export_stats_json

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")


@dataclass
class ReportResult:
    """Everything one run produced (stats, summary, and files written)."""
    input_path: str
    summary: DatasetSummary
    health_stats: List[AggregatedEventStat]
    economic_stats: List[AggregatedEventStat]
    health_chart: ChartConfig
    economic_chart: ChartConfig
    health_chart_path: str
    economic_chart_path: str
    docx_path: Optional[str] = None
    # name -> path, e.g. {"health": "out/health_stats.csv"}
    exports: Dict[str, str] = field(default_factory=dict)


def run_report(
    path: str,
    out_dir: str,
    *,
    top_n: int = TOP_N,
    columns: ColumnMap = ColumnMap(),
    docx_path: Optional[str] = None,
    export: Optional[str] = None,
) -> ReportResult:
    """Load, aggregate, and render both charts into `out_dir`.

    Raises:
        LoadError: if the input table cannot be loaded.
        ReportError: if the table has no rows to plot.
        ValueError: for an unknown export format or a negative top_n.
    """
    if export is not None and export not in EXPORT_FORMATS:
        raise ValueError(f"export must be one of {EXPORT_FORMATS}, got {export!r}")

    path = os.fspath(path)
    records = load_records(path, columns)
    summary = summarize_records(records)
    logger.info(
        f"{summary.n_records} records, {summary.n_event_types} distinct event types"
    )
    if summary.unrecognized_codes:
        logger.info(f"Unrecognized magnitude codes (scaled by 1): {summary.unrecognized_codes}")

    health = aggregate_health(records, top_n=top_n)
    economic = aggregate_economic(records, top_n=top_n)

    health_chart = health_chart_config(top_n)
    economic_chart = economic_chart_config(top_n)
    os.makedirs(out_dir, exist_ok=True)
    result = ReportResult(
        input_path=path,
        summary=summary,
        health_stats=health,
        economic_stats=economic,
        health_chart=health_chart,
        economic_chart=economic_chart,
        health_chart_path=plot_grouped_barh(
            health, os.path.join(out_dir, "health_impact.png"), health_chart
        ),
        economic_chart_path=plot_grouped_barh(
            economic, os.path.join(out_dir, "economic_impact.png"), economic_chart
        ),
    )

    if export == "csv":
        result.exports["health"] = export_stats_csv(health, os.path.join(out_dir, "health_stats.csv"))
        result.exports["economic"] = export_stats_csv(economic, os.path.join(out_dir, "economic_stats.csv"))
    elif export == "json":
        result.exports["health"] = export_stats_json(health, os.path.join(out_dir, "health_stats.json"))
        result.exports["economic"] = export_stats_json(economic, os.path.join(out_dir, "economic_stats.json"))

    if docx_path:
        cfg = ReportConfig(citation=DatasetCitation(file_name=os.path.basename(path)))
        result.docx_path = generate_docx_report(result, docx_path, config=cfg)

    return result
