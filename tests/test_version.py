from __future__ import annotations

from packaging.version import Version

import gantry_factor


def test_version_is_semantic() -> None:
    version = Version(gantry_factor.__version__)

    assert len(version.release) == 3
