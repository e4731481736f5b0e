"""Numerical core: sample ingestion, drift fitting and gantry factor estimation."""

from .compensation import (
    CompensationConfig,
    CompensationPreview,
    ReferenceSelector,
    merge_compensation_config,
    preview_compensation,
    resolve_reference_temperature,
)
from .drift_model import FittedDriftModel, fit_drift_model
from .errors import (
    DegenerateRegressionError,
    EmptyInputError,
    GantryFactorError,
    MissingFieldError,
    SampleValueError,
    SingularDesignMatrixError,
    UnderdeterminedModelError,
)
from .gantry_factor import GantryFactorEstimate, estimate_from_samples, estimate_gantry_factor
from .ols import OLSResult, design_matrix, fit_ols
from .samples import DEFAULT_FIELDS, DEFAULT_STEP_DISTANCE, Sample, SampleFields, ingest_samples

__all__ = [
    "CompensationConfig",
    "CompensationPreview",
    "ReferenceSelector",
    "merge_compensation_config",
    "preview_compensation",
    "resolve_reference_temperature",
    "FittedDriftModel",
    "fit_drift_model",
    "GantryFactorError",
    "EmptyInputError",
    "MissingFieldError",
    "SampleValueError",
    "UnderdeterminedModelError",
    "SingularDesignMatrixError",
    "DegenerateRegressionError",
    "GantryFactorEstimate",
    "estimate_from_samples",
    "estimate_gantry_factor",
    "OLSResult",
    "design_matrix",
    "fit_ols",
    "DEFAULT_FIELDS",
    "DEFAULT_STEP_DISTANCE",
    "Sample",
    "SampleFields",
    "ingest_samples",
]
