"""
Dataset loader (storm data table -> WeatherRecord list)
=======================================================

This module reads the NOAA storm data export and converts each row into a
`WeatherRecord` object.

Key ideas:
- The table may be plain or compressed (bz2, gz, zip, xz); pandas infers the
  codec from the file suffix. Excel exports (.xlsx) are read with openpyxl.
- We try multiple possible column names because exports vary
  (`EVTYPE` in the raw download, `Event Type` in some re-exports).
- Numeric cells that fail to parse become missing and are reported once per
  column with a `FieldCoercionWarning`; they never abort the load.
- Event types and magnitude codes are kept verbatim (no trimming, no case
  folding). Only blank cells count as missing: strings such as
  "NA" or "NULL" are real event types, not NA markers.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import os
import re
import warnings
import zipfile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .models import WeatherRecord

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


class LoadError(ValueError):
    """Input table is missing, unreadable, or not shaped like storm data."""


class FieldCoercionWarning(UserWarning):
    """A numeric cell could not be parsed and was treated as missing."""


@dataclass(frozen=True)
class ColumnMap:
    """Candidate header names for each WeatherRecord field.

    The first candidate present in the table wins; if none matches exactly,
    headers are compared case- and punctuation-insensitively.
    """
    event_type: Tuple[str, ...] = ("EVTYPE", "EVENT_TYPE", "Event Type")
    fatalities: Tuple[str, ...] = ("FATALITIES", "Deaths", "Total Deaths")
    injuries: Tuple[str, ...] = ("INJURIES", "Injured")
    property_damage_base: Tuple[str, ...] = ("PROPDMG", "Property Damage")
    property_damage_magnitude: Tuple[str, ...] = ("PROPDMGEXP", "Property Damage Exp")
    crop_damage_base: Tuple[str, ...] = ("CROPDMG", "Crop Damage")
    crop_damage_magnitude: Tuple[str, ...] = ("CROPDMGEXP", "Crop Damage Exp")


NUMERIC_FIELDS = ("fatalities", "injuries", "property_damage_base", "crop_damage_base")
TEXT_FIELDS = ("event_type", "property_damage_magnitude", "crop_damage_magnitude")


def _to_float(x) -> Optional[float]:
    """Convert an already-coerced cell to float, returning None if missing."""
    if pd.isna(x): return None
    return float(x)

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x)

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")


def resolve_columns(df: pd.DataFrame, columns: ColumnMap = ColumnMap()) -> Dict[str, str]:
    """Map each WeatherRecord field name to the matching table header."""
    return {
        field_name: _col(df, *getattr(columns, field_name))
        for field_name in TEXT_FIELDS + NUMERIC_FIELDS
    }


def _coerce_numeric(df: pd.DataFrame, col: str) -> pd.Series:
    """Parse a column as numbers; unparseable cells become NaN with a warning."""
    raw = df[col]
    parsed = pd.to_numeric(raw, errors="coerce")
    # blank cells are missing, not malformed
    bad = raw.notna() & (raw != "") & parsed.isna()
    n_bad = int(bad.sum())
    if n_bad:
        for idx, value in raw[bad].head(5).items():
            logger.debug(f"Row {idx}: could not parse {col}={value!r}; treating as missing")
        warnings.warn(
            f"{n_bad} value(s) in column {col!r} could not be parsed as numbers "
            "and were treated as missing",
            FieldCoercionWarning,
            stacklevel=4,  # caller of load_records
        )
    return parsed


def read_table(path: str) -> pd.DataFrame:
    """Read the raw table into a DataFrame of strings.

    Raises:
        LoadError: if the file does not exist or cannot be parsed.
    """
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise LoadError(f"File does not exist: {path}")

    try:
        if path.lower().endswith(EXCEL_SUFFIXES):
            df = pd.read_excel(path, engine="openpyxl", dtype=str,
                               keep_default_na=False, na_values=[""])
        else:
            df = pd.read_csv(path, compression="infer", dtype=str, low_memory=False,
                             keep_default_na=False, na_values=[""])
    except (OSError, EOFError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
        # ParserError, EmptyDataError and UnicodeDecodeError are ValueErrors;
        # corrupt compressed streams surface as OSError/EOFError.
        raise LoadError(f"Could not read {path} as a table: {e}") from e

    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def records_from_frame(df: pd.DataFrame, columns: ColumnMap = ColumnMap()) -> List[WeatherRecord]:
    """Convert a DataFrame into WeatherRecord objects.

    Raises:
        LoadError: if a required column is absent.
    """
    try:
        resolved = resolve_columns(df, columns)
    except KeyError as e:
        raise LoadError(str(e.args[0])) from e
    logger.info(f"Resolved columns: {resolved}")

    numeric = {}
    for f in NUMERIC_FIELDS:
        numeric[f] = _coerce_numeric(df, resolved[f])
    text = {f: df[resolved[f]] for f in TEXT_FIELDS}

    records: List[WeatherRecord] = []
    for evtype, fat, inj, prop, prop_exp, crop, crop_exp in zip(
        text["event_type"],
        numeric["fatalities"],
        numeric["injuries"],
        numeric["property_damage_base"],
        text["property_damage_magnitude"],
        numeric["crop_damage_base"],
        text["crop_damage_magnitude"],
    ):
        records.append(WeatherRecord(
            event_type=_to_str(evtype),
            fatalities=_to_float(fat),
            injuries=_to_float(inj),
            property_damage_base=_to_float(prop),
            property_damage_magnitude=_to_str(prop_exp),
            crop_damage_base=_to_float(crop),
            crop_damage_magnitude=_to_str(crop_exp),
        ))
    return records


def load_records(path: str, columns: ColumnMap = ColumnMap()) -> List[WeatherRecord]:
    """Load a storm data table (optionally compressed) into WeatherRecords.

    No semantic validation is done: negative counts and unknown magnitude
    codes are passed through unchanged.
    """
    path = os.fspath(path)
    logger.info(f"Loading storm data from {path}")
    df = read_table(path)
    records = records_from_frame(df, columns)
    logger.info(f"Loaded {len(records)} records from {os.path.basename(path)}")
    return records

