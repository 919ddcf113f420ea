"""Shared fixtures: small NOAA-shaped storm data tables written to tmp_path."""

from __future__ import annotations

from typing import Dict, List

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

RAW_COLUMNS = [
    "STATE__",
    "BGN_DATE",
    "EVTYPE",
    "FATALITIES",
    "INJURIES",
    "PROPDMG",
    "PROPDMGEXP",
    "CROPDMG",
    "CROPDMGEXP",
    "REFNUM",
]


def storm_frame(rows: List[Dict]) -> pd.DataFrame:
    """DataFrame with the raw download's headers; unspecified cells are blank."""
    return pd.DataFrame(
        [{c: row.get(c) for c in RAW_COLUMNS} for row in rows],
        columns=RAW_COLUMNS,
    )


@pytest.fixture()
def storm_rows() -> List[Dict]:
    return [
        {"STATE__": 1, "BGN_DATE": "4/18/1950 0:00:00", "EVTYPE": "TORNADO",
         "FATALITIES": 2, "INJURIES": 15, "PROPDMG": 25, "PROPDMGEXP": "K",
         "CROPDMG": 0, "REFNUM": 1},
        {"STATE__": 1, "BGN_DATE": "4/18/1950 0:00:00", "EVTYPE": "TORNADO",
         "FATALITIES": 0, "INJURIES": 2, "PROPDMG": 2.5, "PROPDMGEXP": "M",
         "CROPDMG": 0, "REFNUM": 2},
        {"STATE__": 6, "BGN_DATE": "1/1/2006 0:00:00", "EVTYPE": "FLOOD",
         "FATALITIES": 0, "INJURIES": 0, "PROPDMG": 115, "PROPDMGEXP": "B",
         "CROPDMG": 32.5, "CROPDMGEXP": "M", "REFNUM": 3},
        {"STATE__": 48, "BGN_DATE": "6/5/1995 0:00:00", "EVTYPE": " TSTM WIND",
         "FATALITIES": None, "INJURIES": 1, "PROPDMG": 50, "PROPDMGEXP": "h",
         "CROPDMG": None, "REFNUM": 4},
        {"STATE__": 17, "BGN_DATE": "7/13/1995 0:00:00", "EVTYPE": "EXCESSIVE HEAT",
         "FATALITIES": 583, "INJURIES": 0, "PROPDMG": 0, "CROPDMG": 0, "REFNUM": 5},
    ]


@pytest.fixture()
def storm_bz2(tmp_path, storm_rows) -> str:
    path = tmp_path / "StormData.csv.bz2"
    storm_frame(storm_rows).to_csv(path, index=False, compression="bz2")
    return str(path)


@pytest.fixture()
def write_storm(tmp_path):
    """Write rows to tmp_path/<name>; .xlsx goes through openpyxl, else CSV."""

    def _write(name: str, rows: List[Dict], drop=(), compression="infer") -> str:
        path = tmp_path / name
        df = storm_frame(rows).drop(columns=list(drop))
        if name.endswith(".xlsx"):
            df.to_excel(path, index=False)
        else:
            df.to_csv(path, index=False, compression=compression)
        return str(path)

    return _write
