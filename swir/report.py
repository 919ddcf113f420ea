from __future__ import annotations

"""
SWIR report generator
---------------------
Renders aggregator output as horizontal grouped bar charts (PNG) and, when
asked, bundles both charts into a DOCX report.

Design goals:
- Keep the aggregation importable without plotting dependencies
  (matplotlib and python-docx are imported lazily).
- One bar group per event type, one bar per metric kind, highest-ranked
  event type at the top.
- Every chart carries a title, a subtitle and a data-source caption.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
import logging
import os

from .models import (
    AggregatedEventStat,
    FATALITIES,
    INJURIES,
    PROPERTY_DAMAGE,
    CROP_DAMAGE,
)
from .tables import pivot_stats

if TYPE_CHECKING:
    from .pipeline import ReportResult

logger = logging.getLogger(__name__)

DATA_SOURCE_CAPTION = (
    "Data source: U.S. National Oceanic and Atmospheric Administration (NOAA) Storm Database"
)


class ReportError(RuntimeError):
    """Raised when there is nothing to render."""


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "Storm Events Database"
    institutional_author: str = "NOAA National Centers for Environmental Information"
    location: str = "Asheville, NC, USA"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    file_name: Optional[str] = None
    file_note: Optional[str] = "Bulk storm data export (compressed CSV)."


@dataclass
class ChartConfig:
    """Presentation metadata and styling for one grouped bar chart."""
    title: str
    subtitle: str
    xlabel: str
    # metric kind -> legend label
    bar_labels: Dict[str, str] = field(default_factory=dict)
    caption: str = DATA_SOURCE_CAPTION
    legend_title: str = ""
    # values are divided by this before plotting (e.g. 1e9 for billions)
    scale: float = 1.0
    figsize: Tuple[float, float] = (10.0, 8.0)
    dpi: int = 200


def health_chart_config(top_n: int) -> ChartConfig:
    return ChartConfig(
        title=f"Top {top_n} weather events most harmful to population health",
        subtitle="Total fatalities and injuries per event type",
        xlabel="Number of people",
        bar_labels={FATALITIES: "Fatalities", INJURIES: "Injuries"},
        legend_title="Harm",
    )


def economic_chart_config(top_n: int) -> ChartConfig:
    return ChartConfig(
        title=f"Top {top_n} weather events with the greatest economic consequences",
        subtitle="Total property and crop damage per event type",
        xlabel="Damage (billion US$)",
        bar_labels={PROPERTY_DAMAGE: "Property damage", CROP_DAMAGE: "Crop damage"},
        legend_title="Damage",
        scale=1e9,
    )


@dataclass
class ReportConfig:
    """High-level knobs to control how the DOCX report is written."""
    title: str = "Severe Weather Impact Report"
    subtitle: str = "Population health and economic consequences by event type"
    dataset_name: str = "NOAA Storm Database export"
    citation: DatasetCitation = field(default_factory=DatasetCitation)


# -----------------------------
# Lazy imports
# -----------------------------

def _import_pyplot():
    try:
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e
    return plt, np


# -----------------------------
# Charts
# -----------------------------

def plot_grouped_barh(
    stats: Sequence[AggregatedEventStat],
    out_path: str,
    chart: ChartConfig,
) -> str:
    """Render one horizontal grouped bar chart and save it as an image.

    Rows are drawn in the order of `stats`; the first event type ends up at
    the top of the chart.
    """
    if not stats:
        raise ReportError(f"No rows to plot for chart: {chart.title}")
    plt, np = _import_pyplot()

    wide = pivot_stats(stats)
    kinds = [c for c in wide.columns if c != "total"]
    y = np.arange(len(wide))
    height = 0.8 / len(kinds)

    fig, ax = plt.subplots(figsize=chart.figsize)
    for i, kind in enumerate(kinds):
        offset = (i - (len(kinds) - 1) / 2) * height
        ax.barh(
            y + offset,
            wide[kind].to_numpy(dtype=float) / chart.scale,
            height=height,
            label=chart.bar_labels.get(kind, kind),
        )

    ax.set_yticks(y)
    ax.set_yticklabels(list(wide.index))
    ax.invert_yaxis()  # rank 1 on top
    ax.set_xlabel(chart.xlabel)
    ax.set_ylabel("Event type")
    ax.legend(title=chart.legend_title or None, loc="lower right")
    ax.set_title(chart.subtitle, fontsize=11, style="italic")
    fig.suptitle(chart.title, fontsize=14, fontweight="bold")
    fig.text(0.99, 0.01, chart.caption, ha="right", va="bottom", fontsize=8, color="dimgray")

    fig.tight_layout(rect=(0, 0.03, 1, 1))
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.savefig(out_path, dpi=chart.dpi)
    plt.close(fig)
    logger.info(f"Saved chart to {out_path}")
    return out_path


# -----------------------------
# DOCX report
# -----------------------------

def _fmt(v: float, digits: int = 0) -> str:
    return f"{v:,.{digits}f}"


def generate_docx_report(
    result: "ReportResult",
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """
    Bundle the two charts, their top-N tables and a dataset summary into a
    DOCX file.
    """
    config = config or ReportConfig()

    # Only needed when a DOCX is requested.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _stat_table(stats: Sequence[AggregatedEventStat], labels: Dict[str, str], scale: float) -> None:
        digits = 0 if scale == 1 else 3
        wide = pivot_stats(stats)
        kinds = [c for c in wide.columns if c != "total"]
        t = doc.add_table(rows=1, cols=len(kinds) + 3)
        h = t.rows[0].cells
        h[0].text = "Rank"
        h[1].text = "Event type"
        for i, kind in enumerate(kinds):
            h[2 + i].text = labels.get(kind, kind)
        h[-1].text = "Total"
        for rank, (evtype, row) in enumerate(wide.iterrows(), start=1):
            cells = t.add_row().cells
            cells[0].text = str(rank)
            cells[1].text = str(evtype)
            for i, kind in enumerate(kinds):
                cells[2 + i].text = _fmt(row[kind] / scale, digits)
            cells[-1].text = _fmt(row["total"] / scale, digits)

    summary = result.summary

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    _kv("Records", _fmt(summary.n_records))
    _kv("Distinct event types", _fmt(summary.n_event_types))

    # Dataset citation section
    doc.add_paragraph("")
    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    if cit.file_note:
        doc.add_paragraph(f"File note: {cit.file_note}")
    doc.add_paragraph(
        f"{cit.institutional_author}. {cit.database_name}. {cit.location}. {cit.website}."
    )

    doc.add_paragraph("")
    doc.add_heading("Dataset totals", level=1)
    t = doc.add_table(rows=1, cols=2)
    t.rows[0].cells[0].text = "Metric"
    t.rows[0].cells[1].text = "Total"
    for name, value in [
        ("Fatalities", summary.fatalities),
        ("Injuries", summary.injuries),
        ("Property damage (US$)", summary.property_damage_usd),
        ("Crop damage (US$)", summary.crop_damage_usd),
    ]:
        row = t.add_row().cells
        row[0].text = name
        row[1].text = _fmt(value)

    sections: List[Tuple[str, str, Sequence[AggregatedEventStat], ChartConfig]] = [
        ("Population health", result.health_chart_path, result.health_stats, result.health_chart),
        ("Economic consequences", result.economic_chart_path, result.economic_stats, result.economic_chart),
    ]
    for heading, chart_path, stats, chart in sections:
        doc.add_paragraph("")
        doc.add_heading(heading, level=1)
        doc.add_paragraph(chart.title)
        doc.add_picture(chart_path, width=Inches(6.5))
        p = doc.add_paragraph()
        r = p.add_run(chart.caption)
        r.italic = True
        r.font.size = Pt(8)
        unit = " (billion US$)" if chart.scale == 1e9 else ""
        doc.add_paragraph(f"Ranked totals{unit}:")
        _stat_table(stats, chart.bar_labels, chart.scale)

    # Data quality notes
    doc.add_paragraph("")
    doc.add_heading("Data quality notes", level=1)
    doc.add_paragraph(
        "Event types are grouped by their exact spelling; variants such as "
        "'TSTM WIND' and 'THUNDERSTORM WIND' are counted separately."
    )
    doc.add_paragraph(
        "Damage magnitude codes B, M and K scale the base value by 1e9, 1e6 and "
        "1e3. Any other code leaves the base value unscaled."
    )
    if summary.unrecognized_codes:
        doc.add_paragraph("Unrecognized magnitude codes found (records using each):")
        for code, n in summary.unrecognized_codes.items():
            doc.add_paragraph(f"{code!r}: {n}", style="List Bullet")

    # Reproducibility footer
    doc.add_paragraph("")
    doc.add_heading("Reproducibility footer", level=1)
    from . import __version__ as swir_version
    from datetime import datetime as _dt
    doc.add_paragraph(f"SWIR version: {swir_version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    doc.add_paragraph(f"Input file: {os.path.basename(result.input_path)}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    logger.info(f"Saved DOCX report to {out_path}")
    return out_path
