"""Additive two-temperature model of vertical drift.

The fit explains the observed displacement as
``intercept + bed_coefficient * bed_temperature + frame_coefficient *
frame_temperature``. It is a diagnostic: it reports how well bed and frame
heating explain the drift, and it does not feed the gantry factor estimate.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Tuple

from .ols import design_matrix, fit_ols
from .samples import Sample

__all__ = ["DRIFT_PARAMETERS", "FittedDriftModel", "fit_drift_model"]

logger = logging.getLogger(__name__)

DRIFT_PARAMETERS = ("intercept", "bed_temperature", "frame_temperature")


@dataclass(frozen=True)
class FittedDriftModel:
    """Least squares fit of displacement on bed and frame temperature."""

    intercept: float
    bed_coefficient: float
    frame_coefficient: float
    indices: Tuple[int, ...]
    fitted: Tuple[float, ...]
    residual: Tuple[float, ...]
    coefficient_of_determination: float
    standard_errors: Mapping[str, float]

    @property
    def sample_count(self) -> int:
        return len(self.indices)

    def predict(self, bed_temperature: float, frame_temperature: float) -> float:
        """Return the modelled displacement for the given temperatures."""

        return (
            self.intercept
            + self.bed_coefficient * float(bed_temperature)
            + self.frame_coefficient * float(frame_temperature)
        )

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "intercept": self.intercept,
            "bed_coefficient": self.bed_coefficient,
            "frame_coefficient": self.frame_coefficient,
            "coefficient_of_determination": self.coefficient_of_determination,
            "standard_errors": dict(self.standard_errors),
            "sample_count": self.sample_count,
        }


def fit_drift_model(samples: Sequence[Sample]) -> FittedDriftModel:
    """Regress displacement on bed and frame temperature over ``samples``.

    Every sample passed in takes part in the fit; windowing is up to the
    caller.

    Raises
    ------
    UnderdeterminedModelError
        With fewer than three samples.
    SingularDesignMatrixError
        When bed and frame temperature are collinear (or either is constant).
    """

    design = design_matrix(
        [sample.bed_temperature for sample in samples],
        [sample.frame_temperature for sample in samples],
    )
    result = fit_ols(
        design,
        [sample.displacement for sample in samples],
        names=DRIFT_PARAMETERS,
    )
    model = FittedDriftModel(
        intercept=result.coefficient("intercept"),
        bed_coefficient=result.coefficient("bed_temperature"),
        frame_coefficient=result.coefficient("frame_temperature"),
        indices=tuple(sample.index for sample in samples),
        fitted=result.fitted,
        residual=result.residuals,
        coefficient_of_determination=result.r_squared,
        standard_errors=result.standard_error_map(),
    )
    logger.info(
        "Fitted additive drift model.",
        extra={
            "event": "drift_model.fitted",
            "sample_count": model.sample_count,
            "bed_coefficient": model.bed_coefficient,
            "frame_coefficient": model.frame_coefficient,
            "r_squared": (
                model.coefficient_of_determination
                if math.isfinite(model.coefficient_of_determination)
                else None
            ),
        },
    )
    return model
