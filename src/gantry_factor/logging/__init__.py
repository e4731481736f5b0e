"""Logging utilities for gantry factor estimation."""

from gantry_factor.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
