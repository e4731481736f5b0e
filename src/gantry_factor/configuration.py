"""Helpers to load and interpret project-level configuration files."""

from __future__ import annotations

import math
from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from .analysis.windows import SampleWindow
from .core.compensation import CompensationConfig, ReferenceSelector, merge_compensation_config
from .core.samples import DEFAULT_FIELDS, DEFAULT_STEP_DISTANCE, SampleFields

__all__ = [
    "CalibrationSettings",
    "ConfigValueError",
    "load_project_config",
    "parse_settings",
]


_PROJECT_FILENAME = "pyproject.toml"
_TOOL_SECTION = "gantry_factor"


class ConfigValueError(ValueError):
    """Raised when a configuration entry has an unusable value."""

    def __init__(self, key: str, value: object, expected: str) -> None:
        super().__init__(f"Invalid value {value!r} for '{key}': expected {expected}.")
        self.key = key
        self.value = value


def _as_dict(payload: ABCMapping[str, Any]) -> dict[str, Any]:
    """Recursively coerce TOML mappings into regular dictionaries."""

    result: dict[str, Any] = {}
    for key, value in payload.items():
        key_str = str(key)
        if isinstance(value, ABCMapping):
            result[key_str] = _as_dict(value)
        elif isinstance(value, list):
            result[key_str] = [
                _as_dict(item) if isinstance(item, ABCMapping) else item for item in value
            ]
        else:
            result[key_str] = value
    return result


def _resolve_pyproject_path(candidate: Path) -> Path | None:
    """Return the concrete ``pyproject.toml`` path for ``candidate`` if possible."""

    candidate = candidate.expanduser()
    if candidate.name == _PROJECT_FILENAME:
        return candidate
    if candidate.suffix:
        return None
    return candidate / _PROJECT_FILENAME


def _load_toml_mapping(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    if isinstance(data, ABCMapping):
        return _as_dict(data)
    return None


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Load the ``[tool.gantry_factor]`` section from ``pyproject.toml``.

    ``path`` may point at the file itself or at the directory holding it.
    """

    pyproject_path = _resolve_pyproject_path(path)
    if pyproject_path is None:
        return None

    pyproject_path = pyproject_path.expanduser().resolve(strict=False)
    pyproject_payload = _load_toml_mapping(pyproject_path)
    if not pyproject_payload:
        return None

    tool_section = pyproject_payload.get("tool")
    if not isinstance(tool_section, ABCMapping):
        return None

    section = tool_section.get(_TOOL_SECTION)
    if not isinstance(section, ABCMapping):
        return None

    return _as_dict(section), pyproject_path


@dataclass(frozen=True)
class CalibrationSettings:
    """Typed view over the calibration tables of a configuration mapping."""

    step_distance: float = DEFAULT_STEP_DISTANCE
    compensation: CompensationConfig = field(default_factory=CompensationConfig)
    window: Optional[SampleWindow] = None
    bed_tolerance: Optional[float] = None
    fields: SampleFields = DEFAULT_FIELDS


def _table(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    table = config.get(name, {})
    if table is None:
        return {}
    if not isinstance(table, ABCMapping):
        raise ConfigValueError(name, table, "a table")
    return table


def _optional_int(table: Mapping[str, Any], key: str, section: str) -> Optional[int]:
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValueError(f"{section}.{key}", value, "an integer")
    return value


def _optional_float(table: Mapping[str, Any], key: str, section: str) -> Optional[float]:
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigValueError(f"{section}.{key}", value, "a finite number")
    return float(value)


def parse_settings(config: Mapping[str, Any]) -> CalibrationSettings:
    """Build :class:`CalibrationSettings` from a loaded configuration mapping.

    Recognised tables: ``[ingestion]`` (``step_distance``), ``[compensation]``
    (``frame_length``, ``thermal_coefficient``, ``scale_factor``),
    ``[reference]`` (``start``, ``length``), ``[window]`` (``start``,
    ``stop``, ``bed_tolerance``) and ``[columns]`` (``position``,
    ``bed_temperature``, ``frame_temperature``, ``bed_target``, ``index``).
    """

    ingestion = _table(config, "ingestion")
    step_distance = _optional_float(ingestion, "step_distance", "ingestion")
    if step_distance is not None and step_distance <= 0.0:
        raise ConfigValueError("ingestion.step_distance", step_distance, "a positive number")

    compensation_table = _table(config, "compensation")
    for key in ("frame_length", "thermal_coefficient", "scale_factor"):
        _optional_float(compensation_table, key, "compensation")
    compensation = merge_compensation_config(CompensationConfig(), compensation_table)

    reference = _table(config, "reference")
    start = _optional_int(reference, "start", "reference")
    length = _optional_int(reference, "length", "reference")
    if length is not None and length <= 0:
        raise ConfigValueError("reference.length", length, "a positive integer")
    selector = ReferenceSelector(
        start=start if start is not None else 0,
        length=length if length is not None else 1,
    )
    compensation = replace(compensation, reference_sample_selector=selector)

    window_table = _table(config, "window")
    window_start = _optional_int(window_table, "start", "window")
    window_stop = _optional_int(window_table, "stop", "window")
    window: Optional[SampleWindow] = None
    if window_start is not None or window_stop is not None:
        try:
            window = SampleWindow(start=window_start, stop=window_stop)
        except ValueError as exc:
            raise ConfigValueError("window", dict(window_table), "stop > start") from exc
    bed_tolerance = _optional_float(window_table, "bed_tolerance", "window")
    if bed_tolerance is not None and bed_tolerance < 0.0:
        raise ConfigValueError("window.bed_tolerance", bed_tolerance, "a non-negative number")

    columns = _table(config, "columns")
    column_overrides = {
        key: str(value)
        for key, value in columns.items()
        if key in SampleFields.__dataclass_fields__ and value is not None
    }
    sample_fields = SampleFields(**column_overrides) if column_overrides else DEFAULT_FIELDS

    return CalibrationSettings(
        step_distance=step_distance if step_distance is not None else DEFAULT_STEP_DISTANCE,
        compensation=compensation,
        window=window,
        bed_tolerance=bed_tolerance,
        fields=sample_fields,
    )
