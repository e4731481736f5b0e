"""Unit-gain physical model of frame thermal expansion.

The printer compensates frame growth by shifting the toolhead by
``frame_length * thermal_coefficient * delta_t * gantry_factor``. Evaluating
that model with ``gantry_factor = 1`` gives the preview offset that the
gantry factor estimator later scales to match the observed drift.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import math
from typing import Mapping, Optional, Sequence, Tuple

from .errors import EmptyInputError, MissingFieldError
from .samples import Sample

__all__ = [
    "UNIT_GAIN",
    "CompensationConfig",
    "CompensationPreview",
    "ReferenceSelector",
    "merge_compensation_config",
    "preview_compensation",
    "resolve_reference_temperature",
]

UNIT_GAIN = 1.0


@dataclass(frozen=True)
class ReferenceSelector:
    """Block of samples whose mean frame temperature defines ``delta_t = 0``.

    Samples are matched on :attr:`Sample.index`, selecting
    ``start <= index < start + length``. The block should sit on a point where
    the frame is known to be stable; the estimator does not check that.
    """

    start: int = 0
    length: int = 1

    def __post_init__(self) -> None:
        if self.length <= 0:
            raise ValueError("length must be positive")

    @property
    def stop(self) -> int:
        return self.start + self.length

    def select(self, samples: Sequence[Sample]) -> Tuple[Sample, ...]:
        return tuple(sample for sample in samples if self.start <= sample.index < self.stop)


@dataclass(frozen=True)
class CompensationConfig:
    """Physical parameters of the frame expansion model.

    Parameters
    ----------
    frame_length:
        Length of the frame member whose expansion moves the gantry, in
        metres.
    thermal_coefficient:
        Linear expansion rate of the frame material per degree Celsius. The
        default matches extruded aluminium.
    scale_factor:
        Conversion from the model's length unit to the displacement unit
        (metres to millimetres by default).
    reference_sample_selector:
        Samples averaged to obtain the reference frame temperature.
    """

    frame_length: float = 0.530
    thermal_coefficient: float = 23.4e-6
    scale_factor: float = 1000.0
    reference_sample_selector: ReferenceSelector = field(default_factory=ReferenceSelector)

    @property
    def gain_per_degree(self) -> float:
        """Preview offset produced by one degree of frame heating."""

        return -1.0 * self.frame_length * self.thermal_coefficient * UNIT_GAIN * self.scale_factor


@dataclass(frozen=True)
class CompensationPreview:
    """Unit-gain compensation evaluated for each sample."""

    reference_temperature: float
    indices: Tuple[int, ...]
    delta_t: Tuple[float, ...]
    preview_offset: Tuple[float, ...]


def merge_compensation_config(
    base: CompensationConfig, overrides: Mapping[str, object]
) -> CompensationConfig:
    """Return ``base`` updated with the finite numeric entries of ``overrides``."""

    updates: dict[str, float] = {}
    for item in fields(CompensationConfig):
        key = item.name
        if key == "reference_sample_selector" or key not in overrides:
            continue
        try:
            numeric = float(overrides[key])  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if not math.isfinite(numeric):
            continue
        updates[key] = numeric
    if updates:
        return replace(base, **updates)
    return base


def _frame_temperature(sample: Sample) -> float:
    value = sample.frame_temperature
    if value is None or not math.isfinite(value):
        raise MissingFieldError("frame_temperature", index=sample.index)
    return float(value)


def resolve_reference_temperature(samples: Sequence[Sample], selector: ReferenceSelector) -> float:
    """Return the mean frame temperature of the block chosen by ``selector``."""

    block = selector.select(samples)
    if not block:
        raise EmptyInputError(
            f"Reference block [{selector.start}, {selector.stop}) selects no samples.",
            detail=f"reference[{selector.start}:{selector.stop}]",
        )
    values = [_frame_temperature(sample) for sample in block]
    return math.fsum(values) / len(values)


def preview_compensation(
    samples: Sequence[Sample],
    config: CompensationConfig,
    *,
    reference_temperature: Optional[float] = None,
) -> CompensationPreview:
    """Evaluate the unit-gain compensation for every sample.

    ``preview_offset[i] = -frame_length * thermal_coefficient * delta_t[i] *
    scale_factor``. The negative sign retracts the toolhead as the frame
    heats up.

    When ``reference_temperature`` is omitted it is derived with
    ``config.reference_sample_selector``.
    """

    if reference_temperature is None:
        t_ref = resolve_reference_temperature(samples, config.reference_sample_selector)
    else:
        t_ref = float(reference_temperature)
    gain = config.gain_per_degree
    delta_t = tuple(_frame_temperature(sample) - t_ref for sample in samples)
    return CompensationPreview(
        reference_temperature=t_ref,
        indices=tuple(sample.index for sample in samples),
        delta_t=delta_t,
        preview_offset=tuple(gain * delta for delta in delta_t),
    )
