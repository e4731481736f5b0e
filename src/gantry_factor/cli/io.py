"""Configuration and input helpers for the gantry factor CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from ..configuration import load_project_config
from ..core.errors import GantryFactorError
from ..core.samples import SampleFields
from ..io import read_sample_table
from .errors import CliError, cli_error_from_estimation

CONFIG_ENV_VAR = "GANTRY_FACTOR_CONFIG"
DEFAULT_CONFIG_FILENAME = "gantry-factor.toml"

__all__ = ["CONFIG_ENV_VAR", "DEFAULT_CONFIG_FILENAME", "load_cli_config", "load_records"]


def _read_config_file(path: Path) -> Optional[Dict[str, Any]]:
    if path.name == "pyproject.toml":
        loaded = load_project_config(path)
        return loaded[0] if loaded is not None else None
    with path.open("rb") as handle:
        return dict(tomllib.load(handle))


def load_cli_config(path: Path | None = None) -> Dict[str, Any]:
    """Load CLI defaults.

    Candidates, first match wins: ``path``, ``$GANTRY_FACTOR_CONFIG``,
    ``./gantry-factor.toml``, the ``[tool.gantry_factor]`` table of
    ``./pyproject.toml`` and ``~/.config/gantry-factor.toml``. An explicit
    ``path`` that does not exist is an error.
    """

    if path is not None and not path.expanduser().exists():
        raise CliError(
            f"Configuration file {path} does not exist.",
            category="not_found",
            context={"config_path": str(path)},
        )

    candidates: List[Path] = []
    if path is not None:
        candidates.append(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path.cwd() / DEFAULT_CONFIG_FILENAME)
    candidates.append(Path.cwd() / "pyproject.toml")
    candidates.append(Path.home() / ".config" / DEFAULT_CONFIG_FILENAME)

    seen: Dict[Path, None] = {}
    for candidate in candidates:
        resolved = candidate.expanduser().resolve()
        if resolved in seen:
            continue
        seen[resolved] = None
        if not resolved.is_file():
            continue
        try:
            data = _read_config_file(resolved)
        except tomllib.TOMLDecodeError as exc:
            raise CliError(
                f"Cannot parse configuration file {resolved}: {exc}",
                category="usage",
                context={"config_path": str(resolved)},
            ) from exc
        if data is None:
            continue
        data["_config_path"] = str(resolved)
        return data
    return {"_config_path": None}


def load_records(source: Path, fields: SampleFields) -> List[Dict[str, Any]]:
    """Read the sample table at ``source``, translating failures to :class:`CliError`."""

    if not source.exists():
        raise CliError(
            f"Sample table {source} does not exist.",
            category="not_found",
            context={"source": str(source)},
        )
    try:
        return read_sample_table(source, fields=fields)
    except GantryFactorError as exc:
        raise cli_error_from_estimation(exc, source=str(source)) from exc
    except (OSError, ValueError) as exc:
        raise CliError(
            f"Cannot read sample table {source}: {exc}",
            category="io",
            context={"source": str(source)},
        ) from exc
