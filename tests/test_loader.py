"""
tests/test_loader.py

Pytest tests for swir.loader against real files written to tmp_path.

Coverage
--------
- bz2 / gzip / plain CSV and .xlsx inputs
- Verbatim event types and magnitude codes
- Blank numeric cells -> None; "NA"/"NULL"/"None" text kept verbatim
- Unparseable numeric cells -> None + FieldCoercionWarning (attributed to the caller)
- Header matching (exact, then case/punctuation-insensitive)
- LoadError for missing, empty, corrupt, and wrongly shaped files
"""

from __future__ import annotations

import pathlib
import warnings

import pandas as pd
import pytest

from swir.loader import (
    ColumnMap,
    FieldCoercionWarning,
    LoadError,
    load_records,
    records_from_frame,
)
from swir.models import WeatherRecord


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestLoadRecords:
    def test_reads_bz2(self, storm_bz2) -> None:
        records = load_records(storm_bz2)
        assert len(records) == 5
        assert records[0] == WeatherRecord(
            event_type="TORNADO",
            fatalities=2,
            injuries=15,
            property_damage_base=25,
            property_damage_magnitude="K",
            crop_damage_base=0,
            crop_damage_magnitude="",
        )

    def test_keeps_event_type_and_codes_verbatim(self, storm_bz2) -> None:
        tstm = load_records(storm_bz2)[3]
        assert tstm.event_type == " TSTM WIND"
        assert tstm.property_damage_magnitude == "h"

    def test_blank_numeric_cells_are_none(self, storm_bz2) -> None:
        tstm = load_records(storm_bz2)[3]
        assert tstm.fatalities is None
        assert tstm.crop_damage_base is None
        assert tstm.crop_damage_magnitude == ""

    def test_decimal_base_values(self, storm_bz2) -> None:
        flood = load_records(storm_bz2)[2]
        assert flood.property_damage_base == 115
        assert flood.crop_damage_base == 32.5
        assert flood.crop_damage_magnitude == "M"

    def test_accepts_pathlike(self, storm_bz2) -> None:
        assert len(load_records(pathlib.Path(storm_bz2))) == 5

    @pytest.mark.parametrize("name", ["storm.csv", "storm.csv.gz", "storm.csv.xz"])
    def test_other_codecs_match_bz2(self, write_storm, storm_rows, storm_bz2, name) -> None:
        assert load_records(write_storm(name, storm_rows)) == load_records(storm_bz2)

    def test_reads_xlsx(self, write_storm, storm_rows) -> None:
        records = load_records(write_storm("storm.xlsx", storm_rows))
        assert len(records) == 5
        assert records[0].event_type == "TORNADO"
        assert records[0].property_damage_magnitude == "K"
        assert records[2].crop_damage_base == 32.5
        assert records[4].fatalities == 583
        assert records[4].property_damage_magnitude == ""

    def test_negative_counts_pass_through(self, write_storm) -> None:
        path = write_storm("neg.csv", [{"EVTYPE": "ODD", "FATALITIES": -3, "INJURIES": 1}])
        assert load_records(path)[0].fatalities == -3

    def test_extra_columns_and_order_ignored(self, tmp_path, storm_bz2) -> None:
        df = pd.read_csv(storm_bz2, dtype=str)
        shuffled = df[list(reversed(df.columns))].assign(REMARKS="x")
        path = tmp_path / "shuffled.csv"
        shuffled.to_csv(path, index=False)
        assert load_records(str(path)) == load_records(storm_bz2)

    def test_na_like_strings_are_literal_event_types(self, write_storm) -> None:
        path = write_storm("na.csv.bz2", [
            {"EVTYPE": "NA", "FATALITIES": 1, "CROPDMGEXP": "N/A"},
            {"EVTYPE": "NULL", "FATALITIES": 2},
            {"EVTYPE": "None", "FATALITIES": 4},
            {"EVTYPE": "nan", "INJURIES": 3},
        ])

        with warnings.catch_warnings():
            warnings.simplefilter("error", FieldCoercionWarning)
            records = load_records(path)

        assert [r.event_type for r in records] == ["NA", "NULL", "None", "nan"]
        assert records[0].crop_damage_magnitude == "N/A"
        assert records[1].crop_damage_magnitude == ""
        assert records[3].fatalities is None
        assert records[3].injuries == 3

    def test_na_like_event_type_in_xlsx(self, write_storm) -> None:
        path = write_storm("na.xlsx", [{"EVTYPE": "NA", "FATALITIES": 1}, {"EVTYPE": "HAIL"}])
        records = load_records(path)
        assert [r.event_type for r in records] == ["NA", "HAIL"]
        assert records[1].fatalities is None


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestColumnResolution:
    def test_case_and_punctuation_insensitive(self) -> None:
        df = pd.DataFrame({
            "evtype": ["HAIL"],
            "Fatalities": ["1"],
            "injuries": ["2"],
            "PropDmg": ["3"],
            "prop_dmg_exp": ["K"],
            "Crop-Dmg": ["4"],
            "cropdmgexp": ["M"],
        })
        assert records_from_frame(df) == [WeatherRecord("HAIL", 1, 2, 3, "K", 4, "M")]

    def test_custom_column_map(self) -> None:
        df = pd.DataFrame({
            "kind": ["SNOW"], "dead": ["1"], "hurt": [None],
            "p": ["1"], "pe": ["B"], "c": [None], "ce": [None],
        })
        cols = ColumnMap(
            event_type=("kind",), fatalities=("dead",), injuries=("hurt",),
            property_damage_base=("p",), property_damage_magnitude=("pe",),
            crop_damage_base=("c",), crop_damage_magnitude=("ce",),
        )
        assert records_from_frame(df, cols) == [WeatherRecord("SNOW", 1, None, 1, "B", None, "")]

    def test_missing_column_is_load_error(self, write_storm, storm_rows) -> None:
        path = write_storm("nocrop.csv", storm_rows, drop=["CROPDMGEXP"])
        with pytest.raises(LoadError, match="CROPDMGEXP"):
            load_records(path)


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


class TestFieldCoercion:
    def test_unparseable_cell_becomes_missing_with_warning(self, write_storm) -> None:
        path = write_storm("bad.csv", [
            {"EVTYPE": "HAIL", "FATALITIES": "unknown", "INJURIES": 1, "PROPDMG": "12x"},
            {"EVTYPE": "HAIL", "FATALITIES": 2, "INJURIES": 1, "PROPDMG": 5},
        ])

        with pytest.warns(FieldCoercionWarning) as caught:
            records = load_records(path)

        assert records[0].fatalities is None
        assert records[0].property_damage_base is None
        assert records[1].fatalities == 2
        assert records[1].property_damage_base == 5
        messages = " ".join(str(w.message) for w in caught)
        assert "FATALITIES" in messages
        assert "PROPDMG" in messages

    def test_warning_points_at_caller(self, write_storm) -> None:
        path = write_storm("bad.csv", [{"EVTYPE": "HAIL", "INJURIES": "several"}])
        with pytest.warns(FieldCoercionWarning) as caught:
            load_records(path)
        assert caught[0].filename == __file__

    def test_clean_file_emits_no_warning(self, storm_bz2) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", FieldCoercionWarning)
            load_records(storm_bz2)


# ---------------------------------------------------------------------------
# Load errors
# ---------------------------------------------------------------------------


class TestLoadErrors:
    def test_missing_file(self, tmp_path) -> None:
        path = tmp_path / "nope.csv.bz2"
        with pytest.raises(LoadError, match="nope.csv.bz2"):
            load_records(str(path))

    def test_directory_is_not_a_file(self, tmp_path) -> None:
        with pytest.raises(LoadError):
            load_records(str(tmp_path))

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(LoadError):
            load_records(str(path))

    def test_corrupt_bz2(self, tmp_path) -> None:
        path = tmp_path / "corrupt.csv.bz2"
        path.write_bytes(b"this is not a bzip2 stream")
        with pytest.raises(LoadError, match="corrupt.csv.bz2"):
            load_records(str(path))

    def test_corrupt_xlsx(self, tmp_path) -> None:
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip archive")
        with pytest.raises(LoadError):
            load_records(str(path))

    def test_not_storm_data(self, tmp_path) -> None:
        path = tmp_path / "other.csv"
        path.write_text("a,b\n1,2\n")
        with pytest.raises(LoadError, match="Missing required column"):
            load_records(str(path))

    def test_load_error_is_value_error(self) -> None:
        assert issubclass(LoadError, ValueError)
