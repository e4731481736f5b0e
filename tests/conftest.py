from __future__ import annotations

import logging
import sys
from pathlib import Path
from textwrap import dedent
from typing import Callable, Iterator

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by ``setup_logging`` so captured streams do not leak."""

    yield
    logger = logging.getLogger("gantry_factor")
    for handler in list(logger.handlers):
        if getattr(handler, "_gantry_factor_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with no user level configuration."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("GANTRY_FACTOR_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def sample_table(tmp_path: Path) -> Callable[..., Path]:
    from tests.helpers import build_heating_records, write_sample_csv

    def _build(name: str = "drift.csv", **kwargs: object) -> Path:
        records = build_heating_records(**kwargs)  # type: ignore[arg-type]
        return write_sample_csv(tmp_path / name, records)

    return _build
