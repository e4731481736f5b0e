"""Thermal gantry factor estimation for 3D printers.

The package turns a log of homing positions, bed temperatures and frame
temperatures into a calibrated gantry factor: the multiplier that makes the
unit-gain frame expansion model reproduce the observed vertical drift.
"""

from ._version import __version__
from .analysis import CalibrationResult, SampleWindow, bed_at_target, calibrate, calibrate_records, select_window
from .core import (
    CompensationConfig,
    CompensationPreview,
    DegenerateRegressionError,
    EmptyInputError,
    FittedDriftModel,
    GantryFactorError,
    GantryFactorEstimate,
    MissingFieldError,
    ReferenceSelector,
    Sample,
    SampleFields,
    SampleValueError,
    SingularDesignMatrixError,
    UnderdeterminedModelError,
    estimate_from_samples,
    estimate_gantry_factor,
    fit_drift_model,
    ingest_samples,
    preview_compensation,
)
from .io import dump_result, read_sample_table

__all__ = [
    "Sample",
    "SampleFields",
    "ingest_samples",
    "FittedDriftModel",
    "fit_drift_model",
    "CompensationConfig",
    "CompensationPreview",
    "ReferenceSelector",
    "preview_compensation",
    "GantryFactorEstimate",
    "estimate_gantry_factor",
    "estimate_from_samples",
    "CalibrationResult",
    "SampleWindow",
    "bed_at_target",
    "select_window",
    "calibrate",
    "calibrate_records",
    "read_sample_table",
    "dump_result",
    "GantryFactorError",
    "EmptyInputError",
    "MissingFieldError",
    "SampleValueError",
    "UnderdeterminedModelError",
    "SingularDesignMatrixError",
    "DegenerateRegressionError",
    "__version__",
]
