"""Serialisation of calibration results."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Iterator, Mapping, Tuple

from ..analysis.pipeline import CalibrationResult
from ..core.drift_model import FittedDriftModel
from .sample_table import _get_pandas

__all__ = ["RESULT_FORMATS", "dump_mapping", "dump_result", "preview_rows", "write_preview_table"]

RESULT_FORMATS = ("json", "text")


def _json_safe(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _flatten(payload: Mapping[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    for key, value in payload.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, prefix=f"{name}.")
        else:
            yield name, value


def _format_scalar(value: Any) -> str:
    if isinstance(value, float):
        return "nan" if math.isnan(value) else f"{value:.6g}"
    return str(value)


def dump_mapping(payload: Mapping[str, Any], fmt: str = "json") -> str:
    """Render ``payload`` as indented JSON or as ``key = value`` lines.

    Non-finite floats become ``null`` in JSON output.
    """

    if fmt == "json":
        return json.dumps(_json_safe(payload), indent=2, sort_keys=True)
    if fmt == "text":
        return "\n".join(f"{key} = {_format_scalar(value)}" for key, value in _flatten(payload))
    raise ValueError(f"Unsupported result format '{fmt}'. Expected one of {RESULT_FORMATS}.")


def dump_result(result: CalibrationResult | FittedDriftModel, fmt: str = "json") -> str:
    """Serialise a calibration result or a standalone drift model."""

    return dump_mapping(result.as_dict(), fmt)


def preview_rows(result: CalibrationResult) -> list[dict[str, Any]]:
    """Return per-sample rows describing the preview and the compensation."""

    fit_indices = set(result.fit_indices)
    compensated = result.compensated_displacement()
    drift = result.drift_model
    drift_rows: dict[int, Tuple[float, float]] = {}
    if drift is not None:
        drift_rows = {
            index: (fitted, residual)
            for index, fitted, residual in zip(drift.indices, drift.fitted, drift.residual)
        }

    rows: list[dict[str, Any]] = []
    for position, sample in enumerate(result.samples):
        row: dict[str, Any] = {
            "sample": sample.index,
            "displacement": sample.displacement,
            "frame_temperature": sample.frame_temperature,
            "delta_t": result.preview.delta_t[position],
            "preview_offset": result.preview.preview_offset[position],
            "compensated_displacement": compensated[position],
            "in_fit": sample.index in fit_indices,
        }
        if drift is not None:
            fitted, residual = drift_rows.get(sample.index, (math.nan, math.nan))
            row["drift_fitted"] = fitted
            row["drift_residual"] = residual
        rows.append(row)
    return rows


def write_preview_table(result: CalibrationResult, path: str | Path) -> Path:
    """Write :func:`preview_rows` to ``path`` as CSV."""

    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    pd = _get_pandas()
    frame = pd.DataFrame(preview_rows(result))
    frame.to_csv(destination, index=False)
    return destination
