"""
Stat tables and export
======================

Helpers that turn aggregator output into pandas tables (for charts and the
DOCX report) and write it to CSV/JSON.

Row order is always the aggregator's ranking order.
"""

from __future__ import annotations
from typing import Sequence
import json
import os

import pandas as pd

from .aggregate import ranked_event_types
from .models import AggregatedEventStat

STAT_COLUMNS = ["event_type", "metric_kind", "value", "ranking_total"]


def stats_to_frame(stats: Sequence[AggregatedEventStat]) -> pd.DataFrame:
    """Long table: one row per (event type, metric kind)."""
    return pd.DataFrame(
        [[s.event_type, s.metric_kind, s.value, s.ranking_total] for s in stats],
        columns=STAT_COLUMNS,
    )


def pivot_stats(stats: Sequence[AggregatedEventStat]) -> pd.DataFrame:
    """Wide table: one row per event type, one column per metric kind + total.

    Index is the event type, in ranking order.
    """
    order = ranked_event_types(stats)
    kinds = list(dict.fromkeys(s.metric_kind for s in stats))

    long = stats_to_frame(stats)
    wide = long.pivot(index="event_type", columns="metric_kind", values="value")
    totals = long.groupby("event_type", sort=False)["ranking_total"].first()
    wide = wide.reindex(index=order, columns=kinds)
    wide["total"] = totals.reindex(order)
    wide.columns.name = None
    return wide


def export_stats_csv(stats: Sequence[AggregatedEventStat], path: str) -> str:
    """Write stats as CSV (long format). Returns the path written."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    stats_to_frame(stats).to_csv(path, index=False)
    return path


def export_stats_json(stats: Sequence[AggregatedEventStat], path: str) -> str:
    """Write stats as a JSON list of objects.

    JSON keeps field names, which is handier for programs than CSV.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    payload = [
        {
            "event_type": s.event_type,
            "metric_kind": s.metric_kind,
            "value": s.value,
            "ranking_total": s.ranking_total,
        }
        for s in stats
    ]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    return path
