"""Drive baseline updates and regression checks end to end."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from .analyzer import compare
from .config import DEFAULT_ITERATIONS, AnalysisSettings
from .errors import (
    ConfigurationError,
    PerfBaselineError,
    SampleCollectionError,
    WriteFailureError,
)
from .measurement import MeasurementSet, Sample, build
from .report import format_report, format_summary
from .store import BaselineStore
from .types import RegressionVerdict, TestResult
from .workload import WorkloadConfig, WorkloadIdentity

logger = logging.getLogger(__name__)


class SampleSource(Protocol):
    """Runs a workload and returns exactly ``iterations`` samples, or raises."""

    device_id: str

    def collect(self, iterations: int) -> Sequence[Sample]: ...


class RecordedSampleSource:
    """Replay samples captured earlier, e.g. loaded from a sample file."""

    def __init__(self, samples: Sequence[Sample], device_id: str) -> None:
        if not device_id.strip():
            raise ConfigurationError("device_id must be non-empty")
        self.device_id = device_id
        self._samples = tuple(samples)

    def __len__(self) -> int:
        return len(self._samples)

    def collect(self, iterations: int) -> Sequence[Sample]:
        if iterations > len(self._samples):
            raise SampleCollectionError(
                f"requested {iterations} iterations but only {len(self._samples)} samples were recorded",
                operation="collect",
            )
        return self._samples[:iterations]


class Outcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {Outcome.PASS: 0, Outcome.FAIL: 1, Outcome.ERROR: 2}


@dataclass(frozen=True)
class RunOutcome:
    """Result of one ``update`` or ``check`` run.

    ``error_kind`` is the ``error_code`` of the failure when ``outcome`` is
    ERROR. ``report`` is empty for errors.
    """

    outcome: Outcome
    operation: str
    identity: WorkloadIdentity | None = None
    verdict: RegressionVerdict | None = None
    report: str = ""
    error_kind: str | None = None
    error_message: str | None = None
    measurement_set: MeasurementSet | None = None
    baseline_path: Path | None = None
    history_path: Path | None = None

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code

    @classmethod
    def from_error(
        cls,
        exc: PerfBaselineError,
        *,
        operation: str,
        identity: WorkloadIdentity | None = None,
    ) -> RunOutcome:
        return cls(
            outcome=Outcome.ERROR,
            operation=operation,
            identity=identity,
            error_kind=exc.error_code,
            error_message=str(exc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "operation": self.operation,
            "identity": self.identity.key if self.identity else None,
            "verdict": self.verdict.to_dict() if self.verdict else None,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
            "baseline_path": str(self.baseline_path) if self.baseline_path else None,
            "history_path": str(self.history_path) if self.history_path else None,
        }


def collect_samples(source: SampleSource, iterations: int) -> list[Sample]:
    """Collect exactly ``iterations`` samples; any shortfall aborts the run."""
    if iterations < 1:
        raise ConfigurationError(f"iterations must be >= 1, got {iterations!r}", operation="collect")
    try:
        samples = list(source.collect(iterations))
    except PerfBaselineError:
        raise
    except Exception as exc:
        raise SampleCollectionError(
            f"sample source for {source.device_id} failed: {exc}", operation="collect"
        ) from exc

    if len(samples) != iterations:
        raise SampleCollectionError(
            f"expected {iterations} samples, source returned {len(samples)}",
            operation="collect",
        )
    for index, sample in enumerate(samples):
        if not isinstance(sample, Sample):
            raise SampleCollectionError(
                f"sample {index} is {type(sample).__name__}, not Sample", operation="collect"
            )
    return samples


def update_baseline(
    source: SampleSource,
    workload: WorkloadConfig,
    store: BaselineStore,
    iterations: int = DEFAULT_ITERATIONS,
) -> RunOutcome:
    """Measure ``workload`` and store the result as its new baseline."""
    identity = WorkloadIdentity.for_workload(workload, source.device_id)
    logger.info("Updating baseline for %s (%d iterations)", identity, iterations)
    try:
        samples = collect_samples(source, iterations)
        measurement_set = build(samples, source.device_id, workload)
        path = store.save(measurement_set)
    except PerfBaselineError as exc:
        logger.error("Baseline update for %s failed: %s", identity, exc)
        return RunOutcome.from_error(exc, operation="update", identity=identity)

    return RunOutcome(
        outcome=Outcome.PASS,
        operation="update",
        identity=identity,
        report=format_summary(measurement_set),
        measurement_set=measurement_set,
        baseline_path=path,
    )


def check(
    source: SampleSource,
    workload: WorkloadConfig,
    store: BaselineStore,
    settings: AnalysisSettings | None = None,
    iterations: int = DEFAULT_ITERATIONS,
) -> RunOutcome:
    """Measure ``workload`` and compare it against the stored baseline.

    The baseline is loaded before any sample is collected. A failure to append
    the test result to the history is logged and does not change the outcome.
    """
    identity = WorkloadIdentity.for_workload(workload, source.device_id)
    settings = settings or AnalysisSettings()
    logger.info("Checking %s against its baseline (%d iterations)", identity, iterations)
    try:
        baseline = store.load(identity)
        samples = collect_samples(source, iterations)
        current = build(samples, source.device_id, workload)
        verdict = compare(current, baseline, settings)
    except PerfBaselineError as exc:
        logger.error("Regression check for %s failed: %s", identity, exc)
        return RunOutcome.from_error(exc, operation="check", identity=identity)

    report = format_report(current, baseline, verdict)
    history_path: Path | None = None
    try:
        history_path = store.append_test_result(
            TestResult(current=current, baseline=baseline, verdict=verdict)
        )
    except WriteFailureError as exc:
        logger.warning("Test result for %s was not recorded: %s", identity, exc)

    return RunOutcome(
        outcome=Outcome.PASS if verdict.passed else Outcome.FAIL,
        operation="check",
        identity=identity,
        verdict=verdict,
        report=report,
        measurement_set=current,
        baseline_path=store.baseline_path(identity),
        history_path=history_path,
    )
