"""Convenience re-exports for test helpers."""

from __future__ import annotations

from .samples import (
    PHYSICAL_CONFIG,
    STEPS_PER_DEGREE,
    build_drift_samples,
    build_heating_records,
    build_record,
    build_sample,
    write_sample_csv,
)

__all__ = [
    "PHYSICAL_CONFIG",
    "STEPS_PER_DEGREE",
    "build_drift_samples",
    "build_heating_records",
    "build_record",
    "build_sample",
    "write_sample_csv",
]
