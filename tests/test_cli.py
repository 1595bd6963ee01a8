"""Tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

import perfbaseline.cli as cli
from perfbaseline.workload import WORKLOAD_PRESETS, WorkloadIdentity

runner = CliRunner()

BASELINE = [100.0, 102.0, 98.0, 101.0, 99.0]
REGRESSED = [140.0, 138.0, 142.0, 139.0, 141.0]

DEV_A_KEY = WorkloadIdentity.for_workload(WORKLOAD_PRESETS["graphics-moderate"], "dev-a").key


def _write_json(path: Path, payload: Any) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _samples(tmp_path: Path, name: str, values: list[float], device: str = "dev-a") -> Path:
    return _write_json(
        tmp_path / name,
        {"device_id": device, "samples": [{"gpu_time_ms": v} for v in values]},
    )


def _update(tmp_path: Path, values: list[float] = BASELINE) -> Any:
    return runner.invoke(
        cli.app,
        [
            "update",
            str(_samples(tmp_path, "baseline.json", values)),
            "--workload",
            "graphics-moderate",
            "--store",
            str(tmp_path / "store"),
        ],
    )


def _check(tmp_path: Path, values: list[float], *extra: str) -> Any:
    return runner.invoke(
        cli.app,
        [
            "check",
            str(_samples(tmp_path, "current.json", values)),
            "--workload",
            "graphics-moderate",
            "--store",
            str(tmp_path / "store"),
            *extra,
        ],
    )


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PERFBASELINE_HOME", raising=False)


def test_version_flag() -> None:
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert "perfbaseline" in result.output


def test_update_writes_baseline(tmp_path: Path) -> None:
    result = _update(tmp_path)
    assert result.exit_code == 0, result.output
    assert "Baseline updated" in result.output
    assert (tmp_path / "store" / "baselines" / f"{DEV_A_KEY}.json").exists()


def test_check_passes_against_same_samples(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, BASELINE)
    assert result.exit_code == 0, result.output
    assert "Result: PASS" in result.output


def test_check_flags_regression_with_exit_code_one(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, REGRESSED)
    assert result.exit_code == 1
    assert "Result: FAIL" in result.output


def test_check_threshold_strategy_override(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, [104.0, 105.0, 103.0, 104.0, 104.0], "--strategy", "threshold")
    assert result.exit_code == 0, result.output
    assert "max slowdown 5.00%" in result.output


def test_check_without_baseline_exits_two(tmp_path: Path) -> None:
    result = _check(tmp_path, BASELINE)
    assert result.exit_code == 2
    assert "PB_MISSING_BASELINE" in result.output


def test_check_json_output(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, REGRESSED, "--format", "json")
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["outcome"] == "fail"
    assert payload["exit_code"] == 1
    assert payload["verdict"]["branch"] == "welch_t_test"
    assert payload["report"].endswith("Result: FAIL")


def test_check_rejects_unknown_output_format(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, REGRESSED, "--format", "xml")
    assert result.exit_code == 2
    assert not (tmp_path / "store" / "results").exists()


def test_show_rejects_unknown_output_format(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    store = str(tmp_path / "store")
    result = runner.invoke(
        cli.app, ["show", "-w", "graphics-moderate", "-d", "dev-a", "--store", store, "-f", "yaml"]
    )
    assert result.exit_code == 2
    assert "Samples:" not in result.output


def test_check_rejects_unknown_strategy(tmp_path: Path) -> None:
    assert _update(tmp_path).exit_code == 0
    result = _check(tmp_path, BASELINE, "--strategy", "bayesian")
    assert result.exit_code == 2
    assert "PB_CONFIGURATION" in result.output


def test_update_requires_device(tmp_path: Path) -> None:
    path = _write_json(tmp_path / "anon.json", [1.0, 2.0])
    result = runner.invoke(
        cli.app, ["update", str(path), "-w", "graphics-low", "--store", str(tmp_path / "store")]
    )
    assert result.exit_code == 2
    assert "no device id" in result.output


def test_update_with_invalid_sample_exits_two(tmp_path: Path) -> None:
    path = _write_json(tmp_path / "bad.json", {"device_id": "dev-a", "samples": [-5.0]})
    result = runner.invoke(
        cli.app, ["update", str(path), "-w", "graphics-low", "--store", str(tmp_path / "store")]
    )
    assert result.exit_code == 2
    assert "PB_INVALID_SAMPLE" in result.output


def test_iterations_from_config_file(tmp_path: Path) -> None:
    (tmp_path / "perfbaseline.toml").write_text(
        '[store]\nroot = "store"\n\n[run]\niterations = 3\n', encoding="utf-8"
    )
    path = _samples(tmp_path, "baseline.json", BASELINE)
    result = runner.invoke(cli.app, ["update", str(path), "-w", "graphics-low"])
    assert result.exit_code == 0, result.output
    assert "Samples:      3" in result.output


def test_list_show_and_history(tmp_path: Path) -> None:
    store = str(tmp_path / "store")
    assert _update(tmp_path).exit_code == 0
    assert _check(tmp_path, REGRESSED).exit_code == 1

    listed = runner.invoke(cli.app, ["list", "--store", store])
    assert listed.exit_code == 0
    assert DEV_A_KEY in listed.output

    shown = runner.invoke(
        cli.app, ["show", "-w", "graphics-moderate", "-d", "dev-a", "--store", store]
    )
    assert shown.exit_code == 0
    assert "Samples:      5" in shown.output

    shown_json = runner.invoke(
        cli.app,
        ["show", "-w", "graphics-moderate", "-d", "dev-a", "--store", store, "--format", "json"],
    )
    assert json.loads(shown_json.stdout)["device_id"] == "dev-a"

    history = runner.invoke(
        cli.app, ["history", "-w", "graphics-moderate", "-d", "dev-a", "--store", store]
    )
    assert history.exit_code == 0
    assert "FAIL" in history.output


def test_list_empty_store(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["list", "--store", str(tmp_path / "empty")])
    assert result.exit_code == 0
    assert "No baselines stored" in result.output


def test_show_missing_baseline_exits_two(tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app, ["show", "-w", "graphics-low", "-d", "dev-z", "--store", str(tmp_path / "store")]
    )
    assert result.exit_code == 2
    assert "PB_MISSING_BASELINE" in result.output
