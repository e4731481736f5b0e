"""Command handlers for the gantry factor CLI."""

from __future__ import annotations

import argparse
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, Optional

from ..analysis.pipeline import calibrate, select_fit_subset
from ..analysis.windows import SampleWindow
from ..configuration import CalibrationSettings, ConfigValueError, parse_settings
from ..core.compensation import ReferenceSelector, merge_compensation_config
from ..core.drift_model import fit_drift_model
from ..core.errors import GantryFactorError
from ..core.samples import ingest_samples
from ..io import dump_result, write_preview_table
from .errors import CliError, cli_error_from_estimation
from .io import load_records

__all__ = ["handle_estimate", "handle_fit_drift", "resolve_settings"]

logger = logging.getLogger(__name__)


def _override(namespace: argparse.Namespace, name: str) -> Any:
    return getattr(namespace, name, None)


def _numeric_override(
    namespace: argparse.Namespace, name: str, *, allow_zero: bool = False
) -> Optional[float]:
    value = _override(namespace, name)
    if value is None:
        return None
    number = float(value)
    too_small = number < 0.0 if allow_zero else number <= 0.0
    if not math.isfinite(number) or too_small:
        option = "--" + name.replace("_", "-")
        bound = "non-negative" if allow_zero else "positive"
        raise CliError(
            f"{option} must be a {bound} finite number, got {value!r}.",
            category="usage",
            context={"option": option, "value": value},
        )
    return number


def resolve_settings(namespace: argparse.Namespace, config: Mapping[str, Any]) -> CalibrationSettings:
    """Combine configuration file values with command line overrides."""

    try:
        settings = parse_settings(config)
    except ConfigValueError as exc:
        raise CliError(
            str(exc),
            category="usage",
            context={"key": exc.key, "config_path": config.get("_config_path")},
        ) from exc

    step_distance = _numeric_override(namespace, "step_distance")
    if step_distance is not None:
        settings = replace(settings, step_distance=step_distance)

    compensation = merge_compensation_config(
        settings.compensation,
        {
            key: value
            for key in ("frame_length", "thermal_coefficient", "scale_factor")
            if (value := _numeric_override(namespace, key)) is not None
        },
    )
    selector = compensation.reference_sample_selector
    reference_start = _override(namespace, "reference_start")
    reference_length = _override(namespace, "reference_length")
    if reference_start is not None or reference_length is not None:
        try:
            selector = ReferenceSelector(
                start=reference_start if reference_start is not None else selector.start,
                length=reference_length if reference_length is not None else selector.length,
            )
        except ValueError as exc:
            raise CliError(str(exc), category="usage", context={"option": "--reference-length"}) from exc
    settings = replace(settings, compensation=replace(compensation, reference_sample_selector=selector))

    window_start = _override(namespace, "window_start")
    window_stop = _override(namespace, "window_stop")
    if window_start is not None or window_stop is not None:
        base = settings.window or SampleWindow()
        try:
            window = SampleWindow(
                start=window_start if window_start is not None else base.start,
                stop=window_stop if window_stop is not None else base.stop,
            )
        except ValueError as exc:
            raise CliError(str(exc), category="usage", context={"option": "--window-stop"}) from exc
        settings = replace(settings, window=window)

    bed_tolerance = _numeric_override(namespace, "bed_tolerance", allow_zero=True)
    if bed_tolerance is not None:
        settings = replace(settings, bed_tolerance=bed_tolerance)
    return settings


def _output_format(namespace: argparse.Namespace, config: Mapping[str, Any]) -> str:
    fmt = _override(namespace, "format")
    if fmt is None:
        fmt = str(dict(config.get("output", {}) or {}).get("format", "json"))
    if fmt not in {"json", "text"}:
        raise CliError(
            f"Unsupported output format '{fmt}'.",
            category="usage",
            context={"format": fmt},
        )
    return fmt


def handle_estimate(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Estimate the gantry factor for the table named on the command line."""

    settings = resolve_settings(namespace, config)
    fmt = _output_format(namespace, config)
    source = Path(namespace.table)
    records = load_records(source, settings.fields)
    try:
        samples = ingest_samples(
            records, step_distance=settings.step_distance, fields=settings.fields
        )
        result = calibrate(
            samples,
            settings.compensation,
            window=settings.window,
            bed_tolerance=settings.bed_tolerance,
            fit_drift=not namespace.no_drift,
        )
    except GantryFactorError as exc:
        raise cli_error_from_estimation(exc, source=str(source)) from exc

    preview_output: Optional[Path] = _override(namespace, "preview_output")
    if preview_output is not None:
        try:
            written = write_preview_table(result, preview_output)
        except OSError as exc:
            raise CliError(
                f"Cannot write preview table {preview_output}: {exc}",
                category="io",
                context={"destination": str(preview_output)},
            ) from exc
        logger.info(
            "Wrote preview table.",
            extra={"event": "cli.preview_written", "destination": str(written)},
        )
    return dump_result(result, fmt)


def handle_fit_drift(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Fit the diagnostic drift model only."""

    settings = resolve_settings(namespace, config)
    fmt = _output_format(namespace, config)
    source = Path(namespace.table)
    records = load_records(source, settings.fields)
    try:
        samples = ingest_samples(
            records, step_distance=settings.step_distance, fields=settings.fields
        )
        subset = select_fit_subset(
            samples, window=settings.window, bed_tolerance=settings.bed_tolerance
        )
        model = fit_drift_model(subset)
    except GantryFactorError as exc:
        raise cli_error_from_estimation(exc, source=str(source)) from exc
    return dump_result(model, fmt)
