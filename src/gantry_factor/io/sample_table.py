"""Column extraction from homing/temperature CSV logs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..core.errors import MissingFieldError
from ..core.samples import DEFAULT_FIELDS, SampleFields

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only.
    import pandas as pd

__all__ = ["read_sample_table", "records_from_frame"]

_PANDAS: Any | None = None


def _get_pandas() -> Any:
    global _PANDAS
    if _PANDAS is None:
        import pandas as _pd

        _PANDAS = _pd
    return _PANDAS


def _normalise_column(name: object) -> str:
    return str(name).strip().lower()


def records_from_frame(
    frame: pd.DataFrame, *, fields: Optional[SampleFields] = None
) -> List[Dict[str, Any]]:
    """Return one record per row holding only the columns named by ``fields``.

    Column lookup ignores case and surrounding whitespace. Empty cells become
    ``None`` so that the ingestor reports them as missing fields; cells that
    do not parse as numbers are passed through unchanged so that it reports
    them as invalid values.
    """

    pd = _get_pandas()
    schema = fields or DEFAULT_FIELDS
    lookup = {_normalise_column(column): column for column in frame.columns}

    selected: dict[str, Any] = {}
    for role in schema.required:
        column = lookup.get(_normalise_column(role))
        if column is None:
            raise MissingFieldError(role)
        selected[role] = column
    index_column = lookup.get(_normalise_column(schema.index))
    if index_column is not None:
        selected[schema.index] = index_column

    extracted = frame[list(selected.values())].copy()
    extracted.columns = list(selected.keys())
    for column in extracted.columns:
        original = extracted[column]
        numeric = pd.to_numeric(original, errors="coerce")
        extracted[column] = numeric.astype(object).where(numeric.notna(), original)
    cleaned = extracted.astype(object)
    cleaned = cleaned.where(cleaned.notna(), None)
    return cleaned.to_dict(orient="records")


def read_sample_table(
    path: str | Path, *, fields: Optional[SampleFields] = None
) -> List[Dict[str, Any]]:
    """Read the CSV log at ``path`` into ingestible records."""

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Sample table {source} does not exist")
    pd = _get_pandas()
    frame = pd.read_csv(source, skipinitialspace=True)
    return records_from_frame(frame, fields=fields)
