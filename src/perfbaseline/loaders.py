"""Load recorded timing samples from JSON, JSON Lines, or YAML files."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import SampleCollectionError, SampleValidationError
from .measurement import Sample

JSONL_SUFFIXES = frozenset({".jsonl", ".ndjson"})
YAML_SUFFIXES = frozenset({".yaml", ".yml"})


@dataclass(frozen=True)
class SampleFile:
    """Samples recorded by an external runner, plus optional run metadata."""

    path: Path
    samples: tuple[Sample, ...]
    device_id: str | None = None
    workload: str | None = None
    kind: str | None = None


def _read_jsonl(path: Path, raw: str) -> list[Any]:
    rows: list[Any] = []
    for line_number, line in enumerate(raw.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            rows.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise SampleCollectionError(
                f"{path}:{line_number} is not valid JSON: {exc}", operation="load_samples"
            ) from exc
    return rows


def _read_json_or_yaml(path: Path, raw: str) -> Any:
    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise SampleCollectionError(
                f"failed to parse YAML sample file {path}: {exc}", operation="load_samples"
            ) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        try:
            return yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise SampleCollectionError(
                f"failed to parse sample file {path}; expected JSON, JSON Lines, or YAML",
                operation="load_samples",
            ) from exc


def _parse_sample(raw: Any, *, path: Path, index: int) -> Sample:
    if isinstance(raw, bool):
        raise SampleValidationError(f"{path}: samples[{index}] must be a number or an object")
    if isinstance(raw, int | float):
        return Sample(gpu_time_ms=float(raw))
    if not isinstance(raw, dict):
        raise SampleValidationError(f"{path}: samples[{index}] must be a number or an object")

    value = raw.get("gpu_time_ms")
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise SampleValidationError(f"{path}: samples[{index}].gpu_time_ms must be numeric")
    if not math.isfinite(float(value)):
        raise SampleValidationError(f"{path}: samples[{index}].gpu_time_ms must be finite")

    metrics = raw.get("metrics") or {}
    if not isinstance(metrics, dict):
        raise SampleValidationError(f"{path}: samples[{index}].metrics must be an object")
    for name, metric in metrics.items():
        if isinstance(metric, bool) or not isinstance(metric, int | float):
            raise SampleValidationError(
                f"{path}: samples[{index}].metrics.{name} must be numeric"
            )
    return Sample(gpu_time_ms=float(value), metrics={str(k): float(v) for k, v in metrics.items()})


def _optional_str(payload: dict[str, Any], key: str, path: Path) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise SampleCollectionError(f"{path}: {key} must be a non-empty string", operation="load_samples")
    return value.strip()


def load_sample_file(path: str | Path) -> SampleFile:
    """Parse a recorded sample file.

    Accepted shapes: an object ``{"device_id": ..., "samples": [...]}`` (with
    optional ``workload`` and ``kind``), a bare list of samples, or JSON Lines
    with one sample per line. Each sample is ``{"gpu_time_ms": float,
    "metrics": {...}}`` or just a number of milliseconds.
    """
    sample_path = Path(path)
    if not sample_path.exists():
        raise SampleCollectionError(f"sample file not found: {sample_path}", operation="load_samples")
    try:
        raw = sample_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SampleCollectionError(
            f"unreadable sample file {sample_path}: {exc}", operation="load_samples"
        ) from exc

    if sample_path.suffix.lower() in JSONL_SUFFIXES:
        loaded: Any = _read_jsonl(sample_path, raw)
    else:
        loaded = _read_json_or_yaml(sample_path, raw)

    device_id: str | None = None
    workload: str | None = None
    kind: str | None = None
    if isinstance(loaded, dict):
        device_id = _optional_str(loaded, "device_id", sample_path)
        workload = _optional_str(loaded, "workload", sample_path)
        kind = _optional_str(loaded, "kind", sample_path)
        entries = loaded.get("samples")
    else:
        entries = loaded

    if not isinstance(entries, list):
        raise SampleCollectionError(
            f"{sample_path}: expected a list of samples, got {type(entries).__name__}",
            operation="load_samples",
        )

    samples = tuple(
        _parse_sample(item, path=sample_path, index=index) for index, item in enumerate(entries)
    )
    return SampleFile(
        path=sample_path,
        samples=samples,
        device_id=device_id,
        workload=workload,
        kind=kind,
    )
