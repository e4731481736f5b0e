"""Factories for homing records and samples."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from gantry_factor.core.compensation import CompensationConfig
from gantry_factor.core.samples import Sample

# 0.5 m * 25e-6 / degC * 1000 gives a preview of -0.0125 mm per degree, which
# is exactly 5 raw steps of 0.0025 mm. Integer frame temperatures therefore
# map onto integer step counts for integer gantry factors.
PHYSICAL_CONFIG = CompensationConfig(
    frame_length=0.5,
    thermal_coefficient=25e-6,
    scale_factor=1000.0,
)
STEPS_PER_DEGREE = 5


def build_record(**overrides: Any) -> dict[str, Any]:
    """Return a single upstream log row with sensible defaults."""

    record: dict[str, Any] = {
        "sample": 0,
        "mcu_pos_z": 1000,
        "bed_t": 60.0,
        "frame_t": 22.0,
        "bed_target": 60.0,
    }
    record.update(overrides)
    return record


def build_heating_records(
    count: int = 12,
    *,
    gantry_factor: int = 2,
    start_frame: float = 20.0,
    bed_target: float = 60.0,
    origin: int = 1000,
) -> list[dict[str, Any]]:
    """Rows where the frame warms one degree per sample and drift follows the model.

    The bed wobbles by half a degree around its target so the drift fit stays
    well conditioned.
    """

    records = []
    for index in range(count):
        frame = start_frame + index
        records.append(
            build_record(
                sample=index,
                mcu_pos_z=origin - STEPS_PER_DEGREE * gantry_factor * index,
                bed_t=bed_target + ((index % 3) - 1) * 0.5,
                frame_t=frame,
                bed_target=bed_target,
            )
        )
    return records


def build_sample(
    index: int,
    *,
    displacement: float = 0.0,
    bed_temperature: float = 60.0,
    frame_temperature: float = 22.0,
    bed_target: float = 60.0,
    raw_position: int = 0,
) -> Sample:
    return Sample(
        index=index,
        raw_position=raw_position,
        bed_temperature=bed_temperature,
        frame_temperature=frame_temperature,
        bed_target=bed_target,
        displacement=displacement,
    )


def build_drift_samples(
    intercept: float = 2.0,
    bed_coefficient: float = 0.01,
    frame_coefficient: float = 0.02,
    *,
    count: int = 10,
    noise: Sequence[float] | None = None,
) -> list[Sample]:
    """Samples whose displacement is an exact additive function of both temperatures."""

    samples = []
    for index in range(count):
        bed = 50.0 + 3.0 * index + 2.0 * (index % 2)
        frame = 20.0 + 0.5 * index + (index % 3)
        displacement = intercept + bed_coefficient * bed + frame_coefficient * frame
        if noise is not None:
            displacement += noise[index]
        samples.append(
            build_sample(
                index,
                displacement=displacement,
                bed_temperature=bed,
                frame_temperature=frame,
            )
        )
    return samples


def write_sample_csv(path: Path, records: Iterable[Mapping[str, Any]]) -> Path:
    rows = list(records)
    fieldnames = list(rows[0].keys()) if rows else ["sample", "mcu_pos_z", "bed_t", "frame_t", "bed_target"]
    with path.open("w", newline="", encoding="utf8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow({key: "" if value is None else value for key, value in row.items()})
    return path
