"""IO utilities for gantry factor estimation."""

from .results import RESULT_FORMATS, dump_mapping, dump_result, preview_rows, write_preview_table
from .sample_table import read_sample_table, records_from_frame

__all__ = [
    "RESULT_FORMATS",
    "dump_mapping",
    "dump_result",
    "preview_rows",
    "write_preview_table",
    "read_sample_table",
    "records_from_frame",
]
