"""Calibration of the gantry factor against observed drift.

The physical model predicts ``displacement = gantry_factor * preview_offset``
up to a constant baseline. Regressing the observed displacement on the
unit-gain preview therefore yields the gantry factor as the slope, while the
intercept absorbs any unmodelled bias.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from .compensation import CompensationPreview
from .errors import DegenerateRegressionError, SingularDesignMatrixError
from .ols import design_matrix, fit_ols
from .samples import Sample

__all__ = [
    "GantryFactorEstimate",
    "estimate_from_samples",
    "estimate_gantry_factor",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GantryFactorEstimate:
    """Slope and diagnostics of displacement regressed on preview offset."""

    slope: float
    intercept: float
    standard_error_of_slope: float
    standard_error_of_intercept: float
    r_squared: float
    sample_count: int

    @property
    def gantry_factor(self) -> float:
        return self.slope

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "gantry_factor": self.slope,
            "intercept": self.intercept,
            "standard_error_of_slope": self.standard_error_of_slope,
            "standard_error_of_intercept": self.standard_error_of_intercept,
            "r_squared": self.r_squared,
            "sample_count": self.sample_count,
        }


def estimate_gantry_factor(
    preview_offset: Sequence[float],
    displacement: Sequence[float],
) -> GantryFactorEstimate:
    """Fit ``displacement ≈ intercept + slope * preview_offset``.

    Raises
    ------
    DegenerateRegressionError
        With fewer than two pairs or when ``preview_offset`` does not vary.
    """

    if len(preview_offset) != len(displacement):
        raise ValueError(
            f"preview_offset has {len(preview_offset)} values but displacement has "
            f"{len(displacement)}"
        )
    count = len(preview_offset)
    if count < 2:
        raise DegenerateRegressionError(count, "at least two samples are required")
    offsets = [float(value) for value in preview_offset]
    if max(offsets) == min(offsets):
        raise DegenerateRegressionError(count, "preview offset is constant")

    try:
        result = fit_ols(
            design_matrix(offsets),
            displacement,
            names=("intercept", "slope"),
        )
    except SingularDesignMatrixError as exc:
        raise DegenerateRegressionError(count, "preview offset variance is negligible") from exc

    estimate = GantryFactorEstimate(
        slope=result.coefficient("slope"),
        intercept=result.coefficient("intercept"),
        standard_error_of_slope=result.standard_error("slope"),
        standard_error_of_intercept=result.standard_error("intercept"),
        r_squared=result.r_squared,
        sample_count=count,
    )
    logger.info(
        "Estimated gantry factor.",
        extra={
            "event": "gantry_factor.estimated",
            "gantry_factor": estimate.slope,
            "r_squared": estimate.r_squared if math.isfinite(estimate.r_squared) else None,
            "sample_count": count,
        },
    )
    return estimate


def estimate_from_samples(
    samples: Sequence[Sample],
    preview: CompensationPreview,
    *,
    subset: Optional[Sequence[Sample]] = None,
) -> GantryFactorEstimate:
    """Pair ``preview`` with ``samples`` and estimate over ``subset``.

    ``preview`` must have been computed over ``samples``. ``subset`` restricts
    the regression to a caller-chosen part of the sequence, matched on
    :attr:`Sample.index`; it defaults to every sample.
    """

    if len(preview.indices) != len(samples):
        raise ValueError("preview does not match the sample sequence")
    offsets = dict(zip(preview.indices, preview.preview_offset))
    chosen = samples if subset is None else subset
    try:
        pairs = [(offsets[sample.index], sample.displacement) for sample in chosen]
    except KeyError as exc:
        raise ValueError(f"Sample {exc.args[0]} has no preview offset") from exc
    return estimate_gantry_factor(
        [offset for offset, _ in pairs],
        [value for _, value in pairs],
    )
