"""Selection of the sample subsets used for fitting.

The estimators never truncate their input. Startup and shutdown segments,
or stretches where the bed is still ramping, are excluded here by the caller
before the samples reach the core.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..core.errors import EmptyInputError
from ..core.samples import Sample

__all__ = ["DEFAULT_BED_TOLERANCE", "SampleWindow", "bed_at_target", "select_window"]

DEFAULT_BED_TOLERANCE = 1.0


@dataclass(frozen=True)
class SampleWindow:
    """Half-open range ``start <= index < stop`` over :attr:`Sample.index`."""

    start: Optional[int] = None
    stop: Optional[int] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.stop is not None and self.stop <= self.start:
            raise ValueError(f"Empty window: stop ({self.stop}) <= start ({self.start})")

    def contains(self, index: int) -> bool:
        if self.start is not None and index < self.start:
            return False
        if self.stop is not None and index >= self.stop:
            return False
        return True

    def describe(self) -> str:
        start = "" if self.start is None else str(self.start)
        stop = "" if self.stop is None else str(self.stop)
        return f"window[{start}:{stop}]"


def select_window(samples: Sequence[Sample], window: Optional[SampleWindow]) -> Tuple[Sample, ...]:
    """Return the samples inside ``window`` (all of them when ``window`` is ``None``)."""

    if window is None:
        selected = tuple(samples)
        if not selected:
            raise EmptyInputError()
        return selected
    selected = tuple(sample for sample in samples if window.contains(sample.index))
    if not selected:
        raise EmptyInputError(
            f"The {window.describe()} selects no samples.", detail=window.describe()
        )
    return selected


def bed_at_target(
    samples: Sequence[Sample], tolerance: float = DEFAULT_BED_TOLERANCE
) -> Tuple[Sample, ...]:
    """Keep samples where the bed is holding a non-zero setpoint.

    A sample qualifies when ``bed_target > 0`` and the bed temperature lies
    within ``tolerance`` degrees of it.
    """

    limit = float(tolerance)
    if not math.isfinite(limit) or limit < 0.0:
        raise ValueError(f"tolerance must be a non-negative finite number, got {tolerance!r}")
    selected = tuple(
        sample
        for sample in samples
        if sample.bed_target > 0.0 and abs(sample.bed_temperature - sample.bed_target) <= limit
    )
    if not selected:
        raise EmptyInputError(
            f"No sample has the bed within {limit:g} degrees of its target.",
            detail=f"bed_at_target(tolerance={limit:g})",
        )
    return selected
