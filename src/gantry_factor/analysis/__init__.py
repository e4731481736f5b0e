"""Analysis helpers built on top of the estimation core."""

from .pipeline import CalibrationResult, calibrate, calibrate_records, select_fit_subset
from .windows import DEFAULT_BED_TOLERANCE, SampleWindow, bed_at_target, select_window

__all__ = [
    "CalibrationResult",
    "calibrate",
    "calibrate_records",
    "select_fit_subset",
    "DEFAULT_BED_TOLERANCE",
    "SampleWindow",
    "bed_at_target",
    "select_window",
]
