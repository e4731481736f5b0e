"""End-to-end calibration from samples to a gantry factor."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ..core.compensation import CompensationConfig, CompensationPreview, preview_compensation
from ..core.drift_model import FittedDriftModel, fit_drift_model
from ..core.gantry_factor import GantryFactorEstimate, estimate_from_samples
from ..core.samples import DEFAULT_STEP_DISTANCE, Sample, SampleFields, ingest_samples
from .windows import SampleWindow, bed_at_target, select_window

__all__ = ["CalibrationResult", "calibrate", "calibrate_records", "select_fit_subset"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """Everything derived while calibrating one dataset."""

    samples: Tuple[Sample, ...]
    fit_indices: Tuple[int, ...]
    preview: CompensationPreview
    estimate: GantryFactorEstimate
    config: CompensationConfig = field(default_factory=CompensationConfig)
    drift_model: Optional[FittedDriftModel] = None

    @property
    def gantry_factor(self) -> float:
        return self.estimate.slope

    def compensated_displacement(self) -> Tuple[float, ...]:
        """Displacement left after applying the calibrated compensation."""

        slope = self.estimate.slope
        return tuple(
            sample.displacement - slope * offset
            for sample, offset in zip(self.samples, self.preview.preview_offset)
        )

    def as_dict(self) -> Mapping[str, Any]:
        selector = self.config.reference_sample_selector
        payload: dict[str, Any] = {
            "gantry_factor": self.estimate.as_dict(),
            "reference_temperature": self.preview.reference_temperature,
            "sample_count": len(self.samples),
            "fit_sample_count": len(self.fit_indices),
            "config": {
                "frame_length": self.config.frame_length,
                "thermal_coefficient": self.config.thermal_coefficient,
                "scale_factor": self.config.scale_factor,
                "reference_start": selector.start,
                "reference_length": selector.length,
            },
        }
        if self.drift_model is not None:
            payload["drift_model"] = self.drift_model.as_dict()
        return payload


def select_fit_subset(
    samples: Sequence[Sample],
    *,
    window: Optional[SampleWindow] = None,
    bed_tolerance: Optional[float] = None,
) -> Tuple[Sample, ...]:
    """Apply the bed-at-target filter (when requested) and then ``window``."""

    subset: Sequence[Sample] = samples
    if bed_tolerance is not None:
        subset = bed_at_target(subset, bed_tolerance)
    return select_window(subset, window)


def calibrate(
    samples: Sequence[Sample],
    config: Optional[CompensationConfig] = None,
    *,
    window: Optional[SampleWindow] = None,
    bed_tolerance: Optional[float] = None,
    fit_drift: bool = True,
) -> CalibrationResult:
    """Estimate the gantry factor for ``samples``.

    The reference temperature and the preview are computed over the whole
    sequence; the drift model and the gantry regression only use the subset
    chosen by ``window`` and ``bed_tolerance``.
    """

    settings = config or CompensationConfig()
    subset = select_fit_subset(samples, window=window, bed_tolerance=bed_tolerance)
    drift_model = fit_drift_model(subset) if fit_drift else None
    preview = preview_compensation(samples, settings)
    estimate = estimate_from_samples(samples, preview, subset=subset)

    result = CalibrationResult(
        samples=tuple(samples),
        fit_indices=tuple(sample.index for sample in subset),
        preview=preview,
        estimate=estimate,
        config=settings,
        drift_model=drift_model,
    )
    logger.info(
        "Calibration complete.",
        extra={
            "event": "calibration.completed",
            "gantry_factor": result.gantry_factor,
            "r_squared": estimate.r_squared if math.isfinite(estimate.r_squared) else None,
            "reference_temperature": preview.reference_temperature,
            "sample_count": len(result.samples),
            "fit_sample_count": len(result.fit_indices),
        },
    )
    return result


def calibrate_records(
    records: Iterable[Mapping[str, Any]],
    config: Optional[CompensationConfig] = None,
    *,
    step_distance: float = DEFAULT_STEP_DISTANCE,
    fields: Optional[SampleFields] = None,
    window: Optional[SampleWindow] = None,
    bed_tolerance: Optional[float] = None,
    fit_drift: bool = True,
) -> CalibrationResult:
    """Ingest ``records`` and run :func:`calibrate`."""

    samples = ingest_samples(records, step_distance=step_distance, fields=fields)
    return calibrate(
        samples,
        config,
        window=window,
        bed_tolerance=bed_tolerance,
        fit_drift=fit_drift,
    )
