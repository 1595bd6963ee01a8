"""Typed objects for regression verdicts and recorded test results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .measurement import MeasurementSet, format_timestamp, parse_timestamp, utc_now
from .stats import ConfidenceInterval


class Strategy(str, Enum):
    """Comparison strategy selected by the caller."""

    THRESHOLD = "threshold"
    STATISTICAL = "statistical"


class DecisionBranch(str, Enum):
    """Decision path actually taken to reach a verdict."""

    THRESHOLD = "threshold"
    WELCH_T_TEST = "welch_t_test"
    SMALL_SAMPLE_FALLBACK = "small_sample_fallback"
    ZERO_VARIANCE = "zero_variance"


class VerdictStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


@dataclass(frozen=True)
class MetricComparison:
    """Mean of one secondary metric in both runs. Informational only."""

    name: str
    baseline: float
    current: float

    @property
    def change(self) -> float:
        return self.current - self.baseline

    @property
    def change_percent(self) -> float:
        if self.baseline == 0:
            return 0.0
        return self.change / self.baseline * 100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "baseline": self.baseline,
            "current": self.current,
            "change": self.change,
            "change_percent": self.change_percent,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> MetricComparison:
        return cls(
            name=str(payload["name"]),
            baseline=float(payload["baseline"]),
            current=float(payload["current"]),
        )


@dataclass(frozen=True)
class RegressionVerdict:
    """Outcome of comparing one run against its baseline.

    ``percent_delta`` is a fraction (0.05 means 5% slower). ``threshold`` is set
    whenever a threshold rule decided the verdict, including the small-sample
    fallback of the statistical strategy; ``significance_level`` is set for
    every statistical comparison.
    """

    status: VerdictStatus
    strategy: Strategy
    branch: DecisionBranch
    mean_difference_ms: float
    percent_delta: float
    reason: str
    threshold: float | None = None
    significance_level: float | None = None
    t_statistic: float | None = None
    degrees_of_freedom: float | None = None
    p_value: float | None = None
    confidence_interval: ConfidenceInterval | None = None
    metric_comparisons: tuple[MetricComparison, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status is VerdictStatus.PASS

    @property
    def is_regression(self) -> bool:
        return self.status is VerdictStatus.FAIL

    @property
    def is_improvement(self) -> bool:
        """Current run is faster and the decision rule would have flagged the opposite change."""
        if self.mean_difference_ms >= 0:
            return False
        if self.branch is DecisionBranch.ZERO_VARIANCE:
            return True
        if self.branch is DecisionBranch.WELCH_T_TEST:
            if self.p_value is None or self.significance_level is None:
                return False
            return 1.0 - self.p_value < self.significance_level
        return self.threshold is not None and -self.percent_delta > self.threshold

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "strategy": self.strategy.value,
            "branch": self.branch.value,
            "mean_difference_ms": self.mean_difference_ms,
            "percent_delta": self.percent_delta,
            "reason": self.reason,
            "threshold": self.threshold,
            "significance_level": self.significance_level,
            "t_statistic": self.t_statistic,
            "degrees_of_freedom": self.degrees_of_freedom,
            "p_value": self.p_value,
            "confidence_interval": (
                self.confidence_interval.to_dict() if self.confidence_interval else None
            ),
            "metric_comparisons": [item.to_dict() for item in self.metric_comparisons],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> RegressionVerdict:
        def _opt_float(key: str) -> float | None:
            value = payload.get(key)
            return None if value is None else float(value)

        ci_raw = payload.get("confidence_interval")
        return cls(
            status=VerdictStatus(payload["status"]),
            strategy=Strategy(payload["strategy"]),
            branch=DecisionBranch(payload["branch"]),
            mean_difference_ms=float(payload["mean_difference_ms"]),
            percent_delta=float(payload["percent_delta"]),
            reason=str(payload.get("reason", "")),
            threshold=_opt_float("threshold"),
            significance_level=_opt_float("significance_level"),
            t_statistic=_opt_float("t_statistic"),
            degrees_of_freedom=_opt_float("degrees_of_freedom"),
            p_value=_opt_float("p_value"),
            confidence_interval=ConfidenceInterval.from_dict(ci_raw) if ci_raw else None,
            metric_comparisons=tuple(
                MetricComparison.from_dict(item) for item in payload.get("metric_comparisons", [])
            ),
        )


@dataclass(frozen=True)
class TestResult:
    """Audit record of one comparison run."""

    __test__ = False  # not a pytest test class

    current: MeasurementSet
    baseline: MeasurementSet
    verdict: RegressionVerdict
    recorded_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recorded_at": format_timestamp(self.recorded_at),
            "identity": self.current.identity.key,
            "current": self.current.to_dict(),
            "baseline": self.baseline.to_dict(),
            "verdict": self.verdict.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TestResult:
        return cls(
            current=MeasurementSet.from_dict(payload["current"]),
            baseline=MeasurementSet.from_dict(payload["baseline"]),
            verdict=RegressionVerdict.from_dict(payload["verdict"]),
            recorded_at=parse_timestamp(str(payload["recorded_at"])),
        )
