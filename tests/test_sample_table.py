from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from gantry_factor.core.errors import MissingFieldError, SampleValueError
from gantry_factor.core.samples import SampleFields, ingest_samples
from gantry_factor.io.sample_table import read_sample_table, records_from_frame
from tests.helpers import build_heating_records, write_sample_csv


def test_reads_upstream_log(tmp_path: Path) -> None:
    path = write_sample_csv(tmp_path / "log.csv", build_heating_records(count=4))

    records = read_sample_table(path)
    samples = ingest_samples(records)

    assert len(samples) == 4
    assert [sample.index for sample in samples] == [0, 1, 2, 3]
    assert samples[3].displacement == pytest.approx(-0.075)


def test_column_lookup_ignores_case_and_padding(tmp_path: Path) -> None:
    path = tmp_path / "log.csv"
    path.write_text(
        "Sample, MCU_POS_Z, Bed_T, Frame_T, Bed_Target, notes\n"
        "0, 1000, 60.0, 20.0, 60.0, cold\n"
        "1, 990, 60.5, 21.0, 60.0, warm\n",
        encoding="utf8",
    )

    records = read_sample_table(path)

    assert set(records[0]) == {"sample", "mcu_pos_z", "bed_t", "frame_t", "bed_target"}
    assert records[1]["mcu_pos_z"] == 990


def test_empty_and_na_marker_cells_become_missing(tmp_path: Path) -> None:
    path = tmp_path / "log.csv"
    path.write_text(
        "sample,mcu_pos_z,bed_t,frame_t,bed_target\n"
        "0,1000,60.0,20.0,60.0\n"
        "1,1000,60.0,,60.0\n"
        "2,1000,n/a,20.0,60.0\n",
        encoding="utf8",
    )

    records = read_sample_table(path)

    assert records[1]["frame_t"] is None
    assert records[2]["bed_t"] is None
    with pytest.raises(MissingFieldError) as excinfo:
        ingest_samples(records)
    assert excinfo.value.field == "frame_t"


def test_non_numeric_cells_are_reported_as_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "log.csv"
    path.write_text(
        "sample,mcu_pos_z,bed_t,frame_t,bed_target\n"
        "0,1000,60.0,20.0,60.0\n"
        "1,1000,60.0,warm,60.0\n",
        encoding="utf8",
    )

    records = read_sample_table(path)

    assert records[0]["frame_t"] == 20.0
    assert records[1]["frame_t"] == "warm"
    with pytest.raises(SampleValueError) as excinfo:
        ingest_samples(records)
    assert excinfo.value.field == "frame_t"
    assert excinfo.value.index == 1


def test_missing_column_names_the_role() -> None:
    frame = pd.DataFrame({"mcu_pos_z": [1], "bed_t": [60.0], "bed_target": [60.0]})

    with pytest.raises(MissingFieldError, match="frame_t"):
        records_from_frame(frame)


def test_custom_fields_are_honoured() -> None:
    fields = SampleFields(position="z", bed_temperature="bed", frame_temperature="frame", bed_target="target", index="n")
    frame = pd.DataFrame({"z": [5, 6], "bed": [60.0, 60.0], "frame": [20.0, 21.0], "target": [60.0, 60.0]})

    records = records_from_frame(frame, fields=fields)
    samples = ingest_samples(records, fields=fields)

    assert [sample.index for sample in samples] == [0, 1]
    assert samples[1].raw_position == 6


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_sample_table(tmp_path / "absent.csv")
