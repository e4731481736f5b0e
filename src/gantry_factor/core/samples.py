"""Typed position/temperature samples and their ingestion.

The upstream data producer logs one row per homing probe with the raw
stepper position, the bed and frame temperatures and the bed setpoint. The
ingestor turns those rows into immutable :class:`Sample` instances and derives
the physical displacement relative to the first sample.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .errors import EmptyInputError, MissingFieldError, SampleValueError

__all__ = [
    "DEFAULT_STEP_DISTANCE",
    "DEFAULT_FIELDS",
    "Sample",
    "SampleFields",
    "displacements",
    "ingest_samples",
]

logger = logging.getLogger(__name__)

DEFAULT_STEP_DISTANCE = 0.0025


@dataclass(frozen=True)
class SampleFields:
    """Names of the record fields holding each semantic role.

    Attributes
    ----------
    position:
        Raw stepper position reported by the MCU.
    bed_temperature:
        Measured bed temperature in Celsius.
    frame_temperature:
        Measured frame temperature in Celsius.
    bed_target:
        Commanded bed setpoint.
    index:
        Optional ordinal column. When a record lacks it the position in the
        input sequence is used instead.
    """

    position: str = "mcu_pos_z"
    bed_temperature: str = "bed_t"
    frame_temperature: str = "frame_t"
    bed_target: str = "bed_target"
    index: str = "sample"

    @property
    def required(self) -> Tuple[str, str, str, str]:
        return (self.position, self.bed_temperature, self.frame_temperature, self.bed_target)


DEFAULT_FIELDS = SampleFields()


@dataclass(frozen=True, slots=True)
class Sample:
    """Single homing observation with its derived displacement."""

    index: int
    raw_position: int
    bed_temperature: float
    frame_temperature: float
    bed_target: float
    displacement: float


def _is_absent(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def _field_value(record: Mapping[str, Any], field: str, position: int) -> object:
    value = record.get(field)
    if _is_absent(value):
        raise MissingFieldError(field, index=position)
    return value


def _to_float(record: Mapping[str, Any], field: str, position: int) -> float:
    value = _field_value(record, field, position)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise SampleValueError(field, value, index=position) from exc
    if not math.isfinite(number):
        raise SampleValueError(field, value, index=position)
    return number


def _to_int(record: Mapping[str, Any], field: str, position: int) -> int:
    value = _field_value(record, field, position)
    if isinstance(value, bool):
        raise SampleValueError(field, value, index=position)
    if isinstance(value, int):
        return value
    try:
        numeric = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise SampleValueError(field, value, index=position) from exc
    if not numeric.is_integer():
        raise SampleValueError(field, value, index=position)
    return int(numeric)


def _resolve_index(record: Mapping[str, Any], field: str, position: int) -> int:
    if _is_absent(record.get(field)):
        return position
    return _to_int(record, field, position)


def ingest_samples(
    records: Iterable[Mapping[str, Any]],
    *,
    step_distance: float = DEFAULT_STEP_DISTANCE,
    fields: Optional[SampleFields] = None,
) -> Tuple[Sample, ...]:
    """Return the ordered samples described by ``records``.

    Parameters
    ----------
    records:
        Ordered mappings holding at least the position, bed temperature, frame
        temperature and bed target fields named by ``fields``.
    step_distance:
        Physical distance travelled per raw step. The displacement of sample
        ``i`` is ``(raw_position[i] - raw_position[0]) * step_distance``.
    fields:
        Field naming. Defaults to the upstream log columns (``mcu_pos_z``,
        ``bed_t``, ``frame_t``, ``bed_target`` and ``sample``).

    Raises
    ------
    EmptyInputError
        When ``records`` yields nothing.
    MissingFieldError
        When a required field is absent, ``None``, empty or NaN.
    SampleValueError
        When a field holds a value that cannot be interpreted or an infinite
        temperature.
    """

    step = float(step_distance)
    if not math.isfinite(step) or step <= 0.0:
        raise ValueError(f"step_distance must be a positive finite number, got {step_distance!r}")
    schema = fields or DEFAULT_FIELDS

    samples: list[Sample] = []
    seen: set[int] = set()
    origin: Optional[int] = None
    for position, record in enumerate(records):
        raw_position = _to_int(record, schema.position, position)
        bed_temperature = _to_float(record, schema.bed_temperature, position)
        frame_temperature = _to_float(record, schema.frame_temperature, position)
        bed_target = _to_float(record, schema.bed_target, position)
        index = _resolve_index(record, schema.index, position)
        # indices pair samples with their preview offsets, so they must be unique
        if index in seen:
            raise SampleValueError(schema.index, index, index=position)
        seen.add(index)
        if origin is None:
            origin = raw_position
        samples.append(
            Sample(
                index=index,
                raw_position=raw_position,
                bed_temperature=bed_temperature,
                frame_temperature=frame_temperature,
                bed_target=bed_target,
                displacement=(raw_position - origin) * step,
            )
        )

    if not samples:
        raise EmptyInputError()

    logger.debug(
        "Ingested position samples.",
        extra={
            "event": "samples.ingested",
            "sample_count": len(samples),
            "step_distance": step,
        },
    )
    return tuple(samples)


def displacements(samples: Sequence[Sample]) -> Tuple[float, ...]:
    """Return the displacement column of ``samples``."""

    return tuple(sample.displacement for sample in samples)
