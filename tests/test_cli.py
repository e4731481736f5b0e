from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from gantry_factor.cli import run_cli
from gantry_factor.cli import io as cli_io
from gantry_factor.cli.errors import CliError, cli_error_from_estimation
from gantry_factor.core.errors import MissingFieldError
from tests.conftest import write_pyproject

PHYSICAL_OPTIONS = [
    "--frame-length",
    "0.5",
    "--thermal-coefficient",
    "25e-6",
    "--scale-factor",
    "1000",
]


def _estimate(table: Path, *extra: str) -> dict:
    output = run_cli(["--log-output", "stderr", "estimate", str(table), *PHYSICAL_OPTIONS, *extra])
    return json.loads(output)


def test_estimate_prints_json_result(
    isolated_cwd: Path, sample_table: Callable[..., Path], capsys: pytest.CaptureFixture[str]
) -> None:
    table = sample_table(gantry_factor=2)

    payload = _estimate(table)

    captured = capsys.readouterr()
    assert json.loads(captured.out) == payload
    assert payload["gantry_factor"]["gantry_factor"] == pytest.approx(2.0)
    assert payload["reference_temperature"] == 20.0
    assert "drift_model" in payload
    events = [json.loads(line).get("event") for line in captured.err.splitlines() if line.strip()]
    assert "calibration.completed" in events


def test_estimate_text_format_and_preview(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    table = sample_table(gantry_factor=3)
    preview = isolated_cwd / "preview.csv"

    output = run_cli(
        [
            "estimate",
            str(table),
            *PHYSICAL_OPTIONS,
            "--format",
            "text",
            "--no-drift",
            "--preview-output",
            str(preview),
        ]
    )

    assert "gantry_factor.gantry_factor = 3" in output.splitlines()
    assert "drift_model" not in output
    assert preview.read_text(encoding="utf8").startswith("sample,displacement,")


def test_fit_drift_command(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    table = sample_table()

    payload = json.loads(run_cli(["fit-drift", str(table), "--window-start", "2"]))

    assert payload["sample_count"] == 10
    assert payload["frame_coefficient"] == pytest.approx(-0.025, abs=1e-9)


def test_config_file_values_and_cli_precedence(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    table = sample_table()
    (isolated_cwd / "gantry-factor.toml").write_text(
        "[compensation]\nframe_length = 0.5\nthermal_coefficient = 25e-6\n\n"
        "[reference]\nstart = 4\nlength = 2\n\n[output]\nformat = \"json\"\n",
        encoding="utf8",
    )

    from_config = json.loads(run_cli(["estimate", str(table)]))
    overridden = json.loads(run_cli(["estimate", str(table), "--reference-start", "0"]))

    assert from_config["reference_temperature"] == pytest.approx(24.5)
    assert from_config["config"]["frame_length"] == 0.5
    assert from_config["gantry_factor"]["gantry_factor"] == pytest.approx(2.0)
    assert overridden["reference_temperature"] == pytest.approx(20.5)
    assert overridden["config"]["reference_length"] == 2


def test_pyproject_tool_table_is_used(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    table = sample_table()
    write_pyproject(
        isolated_cwd,
        """
        [tool.gantry_factor.compensation]
        frame_length = 0.5
        thermal_coefficient = 25e-6
        """,
    )

    config = cli_io.load_cli_config()
    payload = json.loads(run_cli(["estimate", str(table)]))

    assert config["compensation"]["frame_length"] == 0.5
    assert config["_config_path"] == str((isolated_cwd / "pyproject.toml").resolve())
    assert payload["gantry_factor"]["gantry_factor"] == pytest.approx(2.0)


def test_environment_config_is_used(
    isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = isolated_cwd / "elsewhere.toml"
    config_path.write_text("[ingestion]\nstep_distance = 0.01\n", encoding="utf8")
    monkeypatch.setenv(cli_io.CONFIG_ENV_VAR, str(config_path))

    config = cli_io.load_cli_config()

    assert config["ingestion"] == {"step_distance": 0.01}


def test_no_config_found(isolated_cwd: Path) -> None:
    assert cli_io.load_cli_config() == {"_config_path": None}


def test_missing_table_exits_not_found(isolated_cwd: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(isolated_cwd / "absent.csv")])

    assert excinfo.value.code == 4
    assert "does not exist" in capsys.readouterr().out


def test_missing_explicit_config_exits_not_found(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["--config", str(isolated_cwd / "nope.toml"), "estimate", str(sample_table())])

    assert excinfo.value.code == 4


def test_degenerate_data_exits_runtime(
    isolated_cwd: Path, sample_table: Callable[..., Path], capsys: pytest.CaptureFixture[str]
) -> None:
    table = sample_table()
    lines = table.read_text(encoding="utf8").splitlines()
    header, rows = lines[0], lines[1:]
    frame_column = header.split(",").index("frame_t")
    rewritten = []
    for row in rows:
        cells = row.split(",")
        cells[frame_column] = "22.0"
        rewritten.append(",".join(cells))
    table.write_text("\n".join([header, *rewritten]) + "\n", encoding="utf8")

    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(table), "--no-drift"])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "degenerate" in captured.out
    error_events = [json.loads(line) for line in captured.err.splitlines() if '"cli.error"' in line]
    assert error_events and error_events[0]["context"]["error"] == "DegenerateRegressionError"


def test_invalid_config_value_exits_usage(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    (isolated_cwd / "gantry-factor.toml").write_text("[reference]\nlength = 0\n", encoding="utf8")

    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(sample_table())])

    assert excinfo.value.code == 2


def test_malformed_config_exits_usage(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    (isolated_cwd / "gantry-factor.toml").write_text("[reference\n", encoding="utf8")

    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(sample_table())])

    assert excinfo.value.code == 2


def test_empty_window_option_exits_usage(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(sample_table()), "--window-start", "5", "--window-stop", "3"])

    assert excinfo.value.code == 2


def test_estimation_errors_keep_their_context() -> None:
    error = cli_error_from_estimation(MissingFieldError("frame_t", index=7), source="log.csv")

    assert isinstance(error, CliError)
    assert error.status_code == 1
    assert error.context == {"error": "MissingFieldError", "field": "frame_t", "index": 7, "source": "log.csv"}


@pytest.mark.parametrize(
    ("option", "value"),
    [
        ("--step-distance", "nan"),
        ("--step-distance", "inf"),
        ("--step-distance", "0"),
        ("--bed-tolerance", "nan"),
        ("--bed-tolerance", "-1"),
        ("--frame-length", "nan"),
        ("--thermal-coefficient", "inf"),
        ("--scale-factor", "nan"),
    ],
)
def test_non_finite_or_out_of_range_options_exit_usage(
    isolated_cwd: Path,
    sample_table: Callable[..., Path],
    capsys: pytest.CaptureFixture[str],
    option: str,
    value: str,
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["estimate", str(sample_table()), option, value])

    assert excinfo.value.code == 2
    captured = capsys.readouterr()
    assert option in captured.out
    error_events = [json.loads(line) for line in captured.err.splitlines() if '"cli.error"' in line]
    assert error_events and error_events[0]["context"]["option"] == option


def test_zero_bed_tolerance_is_accepted(isolated_cwd: Path, sample_table: Callable[..., Path]) -> None:
    payload = json.loads(
        run_cli(
            ["estimate", str(sample_table()), *PHYSICAL_OPTIONS, "--bed-tolerance", "0", "--no-drift"]
        )
    )

    assert payload["fit_sample_count"] == 4
    assert payload["gantry_factor"]["gantry_factor"] == pytest.approx(2.0)
