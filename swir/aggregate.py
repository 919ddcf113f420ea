"""
Impact aggregators
==================

Two independent group-and-sum passes over the loaded records:

- `aggregate_health`   -> fatalities / injuries per event type
- `aggregate_economic` -> property / crop damage (US$) per event type

Both follow the same steps:
1) project each record to (event_type, metric_a, metric_b), missing -> 0
2) group by exact event type string (no case folding, no trimming)
3) rank event types by metric_a + metric_b, highest first
4) expand each event type into two AggregatedEventStat rows and keep the
   top N event types (2 * N rows)

Ranking happens per event type *before* expansion, so an event type's two
rows are always adjacent and never split by the cutoff. Ties keep the order
in which event types were first seen in the input.

Everything here is a pure function of its input: no caching, no globals.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    AggregatedEventStat,
    WeatherRecord,
    ECONOMIC_KINDS,
    HEALTH_KINDS,
)

# Default number of event types kept per chart
TOP_N = 15

# Magnitude code -> multiplier. Anything not listed (lowercase, "H", digits,
# blanks) falls through to 1.
MAGNITUDE_FACTORS: Dict[str, float] = {
    "B": 1e9,
    "M": 1e6,
    "K": 1e3,
}


def magnitude_factor(code: Optional[str]) -> float:
    """Return the multiplier for a damage magnitude code (default 1)."""
    return MAGNITUDE_FACTORS.get(code, 1.0) if code is not None else 1.0


def scaled_damage(base: Optional[float], code: Optional[str]) -> float:
    """Damage in US$: base value times its magnitude factor, missing base -> 0."""
    if base is None:
        return 0.0
    return base * magnitude_factor(code)


def _nz(x: Optional[float]) -> float:
    return 0.0 if x is None else x


Projection = Callable[[WeatherRecord], Tuple[float, float]]


def _health_projection(r: WeatherRecord) -> Tuple[float, float]:
    return _nz(r.fatalities), _nz(r.injuries)


def _economic_projection(r: WeatherRecord) -> Tuple[float, float]:
    return (
        scaled_damage(r.property_damage_base, r.property_damage_magnitude),
        scaled_damage(r.crop_damage_base, r.crop_damage_magnitude),
    )


def _group_sums(records: Iterable[WeatherRecord], project: Projection) -> Dict[str, List[float]]:
    """Sum both projected metrics per event type.

    Dict insertion order records first appearance, which is the tie-break.
    """
    sums: Dict[str, List[float]] = {}
    for r in records:
        a, b = project(r)
        acc = sums.setdefault(r.event_type, [0.0, 0.0])
        acc[0] += a
        acc[1] += b
    return sums


def _rank_and_expand(
    sums: Dict[str, List[float]],
    kinds: Tuple[str, str],
    top_n: int,
) -> List[AggregatedEventStat]:
    if top_n < 0:
        raise ValueError("top_n must be >= 0")
    totals = [(evtype, a, b, a + b) for evtype, (a, b) in sums.items()]
    # sorted() is stable, also with reverse=True
    totals = sorted(totals, key=lambda t: t[3], reverse=True)[:top_n]

    out: List[AggregatedEventStat] = []
    for evtype, a, b, total in totals:
        out.append(AggregatedEventStat(evtype, kinds[0], a, total))
        out.append(AggregatedEventStat(evtype, kinds[1], b, total))
    return out


def aggregate_health(records: Iterable[WeatherRecord], top_n: int = TOP_N) -> List[AggregatedEventStat]:
    """Top event types by fatalities + injuries.

    Returns 2 rows per event type (fatalities, injuries), at most
    `2 * top_n` rows, ordered by the event type's combined total.
    """
    return _rank_and_expand(
        _group_sums(records, _health_projection), HEALTH_KINDS, top_n
    )


def aggregate_economic(records: Iterable[WeatherRecord], top_n: int = TOP_N) -> List[AggregatedEventStat]:
    """Top event types by property + crop damage in US$.

    Base values are scaled by their magnitude code (B/M/K) before summing.
    """
    return _rank_and_expand(
        _group_sums(records, _economic_projection), ECONOMIC_KINDS, top_n
    )


def ranked_event_types(stats: Sequence[AggregatedEventStat]) -> List[str]:
    """Event types in the order they appear in an aggregator's output."""
    return list(dict.fromkeys(s.event_type for s in stats))


# -----------------------------
# Dataset summary
# -----------------------------

@dataclass
class DatasetSummary:
    """Whole-table totals, reported next to the top-N charts."""
    n_records: int = 0
    n_event_types: int = 0
    fatalities: float = 0.0
    injuries: float = 0.0
    property_damage_usd: float = 0.0
    crop_damage_usd: float = 0.0
    # magnitude code -> number of records using it, for codes that scale by 1
    unrecognized_codes: Dict[str, int] = field(default_factory=dict)


def summarize_records(records: Sequence[WeatherRecord]) -> DatasetSummary:
    """Totals over every record plus a tally of unrecognized magnitude codes.

    Blank codes are not counted as unrecognized; they are the common case for
    rows without damage.
    """
    summary = DatasetSummary(n_records=len(records))
    event_types = set()
    codes: Counter = Counter()
    for r in records:
        event_types.add(r.event_type)
        summary.fatalities += _nz(r.fatalities)
        summary.injuries += _nz(r.injuries)
        prop, crop = _economic_projection(r)
        summary.property_damage_usd += prop
        summary.crop_damage_usd += crop
        for code in (r.property_damage_magnitude, r.crop_damage_magnitude):
            if code and code not in MAGNITUDE_FACTORS:
                codes[code] += 1
    summary.n_event_types = len(event_types)
    summary.unrecognized_codes = dict(sorted(codes.items()))
    return summary
