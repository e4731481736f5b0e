"""Argument parsing for the gantry factor CLI."""

from __future__ import annotations

import argparse
from pathlib import Path

from ..io import RESULT_FORMATS
from .workflows import handle_estimate, handle_fit_drift


def add_global_arguments(parser: argparse.ArgumentParser) -> None:
    """Options understood before and after the subcommand."""

    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the TOML configuration file to load.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="Logging level (default: info).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=None,
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=None,
        help="Logging formatter (json or text).",
    )


def _add_table_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("table", type=Path, help="CSV log with mcu_pos_z, bed_t, frame_t and bed_target columns.")
    parser.add_argument(
        "--step-distance",
        type=float,
        default=None,
        help="Physical distance per raw step (default: 0.0025 or [ingestion] step_distance).",
    )
    parser.add_argument(
        "--window-start",
        type=int,
        default=None,
        help="First sample index used for fitting (inclusive).",
    )
    parser.add_argument(
        "--window-stop",
        type=int,
        default=None,
        help="Sample index where the fitting window ends (exclusive).",
    )
    parser.add_argument(
        "--bed-tolerance",
        type=float,
        default=None,
        help="Only fit samples whose bed is within this many degrees of its target.",
    )
    parser.add_argument(
        "--format",
        choices=RESULT_FORMATS,
        default=None,
        help="Output format (default: json or [output] format).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gantry-factor",
        description="Estimate the thermal gantry factor from homing drift logs.",
    )
    add_global_arguments(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    estimate_parser = subparsers.add_parser(
        "estimate",
        help="Fit the gantry factor that scales the frame expansion model to the observed drift.",
    )
    _add_table_arguments(estimate_parser)
    estimate_parser.add_argument(
        "--reference-start",
        type=int,
        default=None,
        help="First sample index of the reference temperature block (default: 0).",
    )
    estimate_parser.add_argument(
        "--reference-length",
        type=int,
        default=None,
        help="Number of samples averaged for the reference temperature (default: 1).",
    )
    estimate_parser.add_argument(
        "--frame-length",
        type=float,
        default=None,
        help="Frame length in metres (default: 0.530).",
    )
    estimate_parser.add_argument(
        "--thermal-coefficient",
        type=float,
        default=None,
        help="Frame expansion per degree Celsius (default: 23.4e-6).",
    )
    estimate_parser.add_argument(
        "--scale-factor",
        type=float,
        default=None,
        help="Conversion from metres to displacement units (default: 1000).",
    )
    estimate_parser.add_argument(
        "--no-drift",
        action="store_true",
        help="Skip the diagnostic bed/frame drift fit.",
    )
    estimate_parser.add_argument(
        "--preview-output",
        type=Path,
        default=None,
        help="Write the per-sample preview and compensated displacement to this CSV file.",
    )
    estimate_parser.set_defaults(handler=handle_estimate)

    drift_parser = subparsers.add_parser(
        "fit-drift",
        help="Fit displacement against bed and frame temperature.",
    )
    _add_table_arguments(drift_parser)
    drift_parser.set_defaults(handler=handle_fit_drift)

    return parser
