"""Samples and immutable measurement sets."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from .errors import EmptySampleSetError, SampleValidationError
from .stats import SummaryStatistics, summarize
from .workload import WorkloadConfig, WorkloadIdentity


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Sample:
    """One iteration: GPU time in milliseconds plus optional secondary metrics."""

    gpu_time_ms: float
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        value = float(self.gpu_time_ms)
        if not math.isfinite(value) or value < 0:
            raise SampleValidationError(
                f"gpu_time_ms must be a finite, non-negative number, got {self.gpu_time_ms!r}"
            )
        object.__setattr__(self, "gpu_time_ms", value)

        metrics: dict[str, float] = {}
        for name, raw in self.metrics.items():
            metric_value = float(raw)
            if not math.isfinite(metric_value):
                raise SampleValidationError(f"metric {name!r} must be finite, got {raw!r}")
            metrics[str(name)] = metric_value
        object.__setattr__(self, "metrics", MappingProxyType(metrics))

    def __hash__(self) -> int:
        return hash((self.gpu_time_ms, tuple(sorted(self.metrics.items()))))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"gpu_time_ms": self.gpu_time_ms}
        if self.metrics:
            payload["metrics"] = dict(self.metrics)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Sample:
        metrics = payload.get("metrics") or {}
        if not isinstance(metrics, Mapping):
            raise SampleValidationError("sample.metrics must be an object")
        return cls(gpu_time_ms=float(payload["gpu_time_ms"]), metrics=dict(metrics))


def _aggregate_metrics(
    samples: tuple[Sample, ...],
) -> tuple[dict[str, SummaryStatistics], tuple[str, ...]]:
    seen: set[str] = set()
    for sample in samples:
        seen.update(sample.metrics)

    complete: dict[str, SummaryStatistics] = {}
    partial: list[str] = []
    for name in sorted(seen):
        if all(name in sample.metrics for sample in samples):
            complete[name] = summarize([sample.metrics[name] for sample in samples])
        else:
            partial.append(name)
    return complete, tuple(partial)


@dataclass(frozen=True)
class MeasurementSet:
    """
    Aggregate of one benchmark run.

    ``timing``, ``metric_statistics`` and ``partial_metrics`` are derived from
    ``samples`` at construction and cannot be passed in. A secondary metric is
    aggregated only when every sample reports it; metrics reported by some
    samples but not all are listed in ``partial_metrics`` instead.
    """

    samples: tuple[Sample, ...]
    device_id: str
    workload: WorkloadConfig
    captured_at: datetime = field(default_factory=utc_now)
    timing: SummaryStatistics = field(init=False)
    metric_statistics: Mapping[str, SummaryStatistics] = field(init=False)
    partial_metrics: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        samples = tuple(self.samples)
        if not samples:
            raise EmptySampleSetError(
                "a measurement set needs at least one sample",
                operation="build",
                identity=str(WorkloadIdentity.for_workload(self.workload, self.device_id)),
            )
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "timing", summarize([s.gpu_time_ms for s in samples]))
        complete, partial = _aggregate_metrics(samples)
        object.__setattr__(self, "metric_statistics", MappingProxyType(complete))
        object.__setattr__(self, "partial_metrics", partial)

    def __hash__(self) -> int:
        return hash((self.samples, self.device_id, self.workload, self.captured_at))

    @property
    def count(self) -> int:
        return self.timing.count

    @property
    def mean(self) -> float:
        return self.timing.mean

    @property
    def std_dev(self) -> float:
        return self.timing.std_dev

    @property
    def min(self) -> float:
        return self.timing.min

    @property
    def max(self) -> float:
        return self.timing.max

    @property
    def median(self) -> float:
        return self.timing.median

    @property
    def identity(self) -> WorkloadIdentity:
        return WorkloadIdentity.for_workload(self.workload, self.device_id)

    def metric(self, name: str) -> SummaryStatistics | None:
        """Return the aggregate for ``name``, or None when it is not present in every sample."""
        return self.metric_statistics.get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "workload": self.workload.to_dict(),
            "captured_at": format_timestamp(self.captured_at),
            "samples": [sample.to_dict() for sample in self.samples],
            "statistics": {
                "timing": self.timing.to_dict(),
                "metrics": {
                    name: stats.to_dict() for name, stats in self.metric_statistics.items()
                },
                "partial_metrics": list(self.partial_metrics),
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> MeasurementSet:
        """Rebuild from ``to_dict`` output; derived statistics are recomputed, not trusted."""
        samples_raw = payload["samples"]
        if not isinstance(samples_raw, list):
            raise ValueError("samples must be a list")
        return cls(
            samples=tuple(Sample.from_dict(item) for item in samples_raw),
            device_id=str(payload["device_id"]),
            workload=WorkloadConfig.from_dict(payload["workload"]),
            captured_at=parse_timestamp(str(payload["captured_at"])),
        )


def build(
    samples: Iterable[Sample],
    device_id: str,
    workload: WorkloadConfig,
    *,
    captured_at: datetime | None = None,
) -> MeasurementSet:
    """Aggregate ``samples`` into a MeasurementSet; raises EmptySampleSetError when empty."""
    return MeasurementSet(
        samples=tuple(samples),
        device_id=device_id,
        workload=workload,
        captured_at=captured_at if captured_at is not None else utc_now(),
    )
