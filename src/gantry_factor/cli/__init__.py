"""Command line utilities for gantry factor estimation."""

from gantry_factor.cli.app import main, run_cli

__all__ = ["main", "run_cli"]
