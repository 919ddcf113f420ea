"""
Data model (WeatherRecord, AggregatedEventStat)
===============================================

Each row of the storm data table becomes a `WeatherRecord`. Records are
immutable (`frozen=True`): the loader builds them once and the aggregators
only read them.

Aggregators turn records into `AggregatedEventStat` rows, two per event type
(one per metric kind).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

# Metric kinds (health aggregator)
FATALITIES = "fatalities"
INJURIES = "injuries"

# Metric kinds (economic aggregator)
PROPERTY_DAMAGE = "propertyDamage"
CROP_DAMAGE = "cropDamage"

HEALTH_KINDS = (FATALITIES, INJURIES)
ECONOMIC_KINDS = (PROPERTY_DAMAGE, CROP_DAMAGE)


@dataclass(frozen=True)
class WeatherRecord:
    """Immutable record for one storm data row.

    Numeric fields are None when the cell was blank or could not be parsed.
    Event types and magnitude codes are kept exactly as they appear.
    """
    event_type: str
    fatalities: Optional[float] = None
    injuries: Optional[float] = None
    property_damage_base: Optional[float] = None
    property_damage_magnitude: str = ""
    crop_damage_base: Optional[float] = None
    crop_damage_magnitude: str = ""


@dataclass(frozen=True)
class AggregatedEventStat:
    """One (event type, metric kind) total.

    `ranking_total` is the event type's combined total over both metric
    kinds; it orders rows and is never shown as a row of its own.
    """
    event_type: str
    metric_kind: str
    value: float
    ranking_total: float
