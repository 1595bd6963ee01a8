"""Tests for the baseline store and test-result history."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from perfbaseline.analyzer import compare_statistical
from perfbaseline.errors import (
    CorruptDataError,
    IncompatibleSchemaError,
    MissingBaselineError,
    WriteFailureError,
)
from perfbaseline.measurement import MeasurementSet, Sample, build
from perfbaseline.store import BASELINE_SCHEMA, SCHEMA_VERSION, BaselineStore
from perfbaseline.types import TestResult
from perfbaseline.workload import WORKLOAD_PRESETS, WorkloadConfig, WorkloadIdentity

WORKLOAD = WORKLOAD_PRESETS["graphics-moderate"]


def _set(values: list[float], device: str = "dev-a", workload: WorkloadConfig = WORKLOAD) -> MeasurementSet:
    return build(
        [Sample(v, metrics={"alu": v / 2.0}) for v in values],
        device,
        workload,
    )


def _rewrite(path: Path, **changes: object) -> None:
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload.update(changes)
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_save_then_load_roundtrip(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([100.0, 102.0, 98.0, 101.0, 99.0])
    path = store.save(ms)

    assert path == tmp_path / "baselines" / f"{ms.identity.key}.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["schema"] == BASELINE_SCHEMA
    assert payload["schema_version"] == SCHEMA_VERSION
    assert store.exists(ms.identity)
    assert store.load(ms.identity) == ms


def test_save_overwrites_previous_baseline(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    store.save(_set([100.0, 101.0, 102.0]))
    replacement = _set([50.0, 51.0])
    store.save(replacement)

    loaded = store.load(replacement.identity)
    assert loaded == replacement
    assert loaded.count == 2


def test_baselines_are_isolated_per_device(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    a = _set([10.0, 11.0], device="dev-a")
    b = _set([20.0, 21.0], device="dev-b")
    store.save(a)
    store.save(b)
    assert store.load(a.identity) == a
    assert store.load(b.identity) == b
    assert store.list_identities() == sorted([a.identity.key, b.identity.key])


def test_devices_with_colliding_slugs_keep_separate_baselines(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    a = _set([10.0, 11.0], device="Apple M1 Pro")
    b = _set([20.0, 21.0], device="apple_m1_pro")
    path_a = store.save(a)
    path_b = store.save(b)
    assert path_a != path_b
    assert store.load(a.identity) == a
    assert store.load(b.identity) == b
    assert len(store.list_identities()) == 2


def test_load_rejects_baseline_stored_under_another_identity(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    other = _set([10.0, 11.0], device="dev-b")
    source = store.save(other)
    identity = WorkloadIdentity.for_workload(WORKLOAD, "dev-a")
    store.baseline_path(identity).write_bytes(source.read_bytes())
    with pytest.raises(CorruptDataError, match="belongs to") as exc:
        store.load(identity)
    assert exc.value.identity == identity.key


def test_load_missing_baseline(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    identity = WorkloadIdentity.for_workload(WORKLOAD, "dev-a")
    with pytest.raises(MissingBaselineError, match="PB_MISSING_BASELINE") as exc:
        store.load(identity)
    assert exc.value.identity == identity.key
    assert exc.value.operation == "load"


def test_load_invalid_json_is_corrupt(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0])
    path = store.save(ms)
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CorruptDataError, match="PB_CORRUPT_DATA"):
        store.load(ms.identity)


def test_load_structurally_invalid_is_corrupt(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0])
    path = store.save(ms)
    _rewrite(path, samples="oops")
    with pytest.raises(CorruptDataError):
        store.load(ms.identity)


def test_load_tampered_statistics_is_corrupt(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0, 3.0])
    path = store.save(ms)
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["statistics"]["timing"]["mean"] += 1.0
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(CorruptDataError, match="do not match"):
        store.load(ms.identity)


@pytest.mark.parametrize("version", ["2.0", "0.9", None, "latest"])
def test_load_rejects_unsupported_schema_version(tmp_path: Path, version: str | None) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0])
    path = store.save(ms)
    _rewrite(path, schema_version=version)
    with pytest.raises(IncompatibleSchemaError, match="PB_INCOMPATIBLE_SCHEMA"):
        store.load(ms.identity)


def test_load_rejects_foreign_schema(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0])
    path = store.save(ms)
    _rewrite(path, schema="someone.else")
    with pytest.raises(IncompatibleSchemaError):
        store.load(ms.identity)


def test_load_accepts_newer_minor_version_with_extra_fields(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    ms = _set([1.0, 2.0])
    path = store.save(ms)
    _rewrite(path, schema_version="1.7", annotations={"note": "added later"})
    assert store.load(ms.identity) == ms


def test_failed_save_keeps_previous_baseline(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = BaselineStore(tmp_path)
    original = _set([100.0, 101.0])
    store.save(original)

    def _boom(src: str, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("perfbaseline.store.os.replace", _boom)
    with pytest.raises(WriteFailureError, match="disk full"):
        store.save(_set([1.0, 2.0]))
    monkeypatch.undo()

    assert store.load(original.identity) == original
    assert [p.name for p in store.baselines_dir.iterdir()] == [f"{original.identity.key}.json"]


def _result(current: MeasurementSet, baseline: MeasurementSet) -> TestResult:
    return TestResult(
        current=current,
        baseline=baseline,
        verdict=compare_statistical(current, baseline, 0.05),
    )


def test_history_appends_and_reads_back(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    baseline = _set([100.0, 101.0, 99.0])
    first = _result(_set([100.0, 100.5, 99.5]), baseline)
    second = _result(_set([140.0, 141.0, 139.0]), baseline)

    path = store.append_test_result(first)
    store.append_test_result(second)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["schema"] == "perfbaseline.test_result"

    history = store.read_history(baseline.identity)
    assert [item.verdict.status.value for item in history] == ["PASS", "FAIL"]
    assert history[1].current == second.current

    newest = store.read_history(baseline.identity, limit=1)
    assert len(newest) == 1
    assert newest[0].verdict == second.verdict


def test_history_empty_when_absent(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    assert store.read_history(WorkloadIdentity.for_workload(WORKLOAD, "dev-a")) == []


def test_history_rejects_corrupt_line(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    baseline = _set([100.0, 101.0])
    path = store.append_test_result(_result(_set([100.0, 101.0]), baseline))
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{broken\n")
    with pytest.raises(CorruptDataError):
        store.read_history(baseline.identity)


def test_history_append_failure_raises_write_failure(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    (tmp_path / "results").write_text("not a directory", encoding="utf-8")
    baseline = _set([100.0, 101.0])
    with pytest.raises(WriteFailureError, match="PB_WRITE_FAILURE"):
        store.append_test_result(_result(_set([100.0, 101.0]), baseline))


def test_list_identities_empty_store(tmp_path: Path) -> None:
    assert BaselineStore(tmp_path / "missing").list_identities() == []
