"""Descriptive statistics and Welch's t-test for timing samples."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from scipy import stats as sp_stats

from .errors import EmptySampleSetError

CI_CONFIDENCE = 0.95


class QualityRating(str, Enum):
    """Run-to-run stability bucket derived from the coefficient of variation."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def from_cv(cls, coefficient_of_variation: float) -> QualityRating:
        if coefficient_of_variation < 0.05:
            return cls.EXCELLENT
        if coefficient_of_variation < 0.10:
            return cls.GOOD
        if coefficient_of_variation < 0.20:
            return cls.FAIR
        return cls.POOR


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float

    def to_dict(self) -> dict[str, float]:
        return {"lower": self.lower, "upper": self.upper}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ConfidenceInterval:
        return cls(lower=float(payload["lower"]), upper=float(payload["upper"]))


@dataclass(frozen=True)
class SummaryStatistics:
    """Descriptive statistics over one series of values."""

    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    median: float
    coefficient_of_variation: float
    ci95: ConfidenceInterval

    @property
    def variance(self) -> float:
        return self.std_dev * self.std_dev

    @property
    def quality(self) -> QualityRating:
        return QualityRating.from_cv(self.coefficient_of_variation)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "mean": self.mean,
            "std_dev": self.std_dev,
            "min": self.min,
            "max": self.max,
            "median": self.median,
            "coefficient_of_variation": self.coefficient_of_variation,
            "ci95": self.ci95.to_dict(),
        }

    def matches(self, other: SummaryStatistics, *, rel_tol: float = 1e-9) -> bool:
        """Return True when ``other`` agrees field-for-field within tolerance."""
        if self.count != other.count:
            return False
        pairs = (
            (self.mean, other.mean),
            (self.std_dev, other.std_dev),
            (self.min, other.min),
            (self.max, other.max),
            (self.median, other.median),
            (self.coefficient_of_variation, other.coefficient_of_variation),
            (self.ci95.lower, other.ci95.lower),
            (self.ci95.upper, other.ci95.upper),
        )
        return all(math.isclose(a, b, rel_tol=rel_tol, abs_tol=1e-12) for a, b in pairs)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SummaryStatistics:
        return cls(
            count=int(payload["count"]),
            mean=float(payload["mean"]),
            std_dev=float(payload["std_dev"]),
            min=float(payload["min"]),
            max=float(payload["max"]),
            median=float(payload["median"]),
            coefficient_of_variation=float(payload["coefficient_of_variation"]),
            ci95=ConfidenceInterval.from_dict(payload["ci95"]),
        )


def summarize(values: Sequence[float]) -> SummaryStatistics:
    """
    Compute descriptive statistics with a Bessel-corrected standard deviation.

    The standard deviation is 0 for a single value or a constant series, and the
    95% interval of the mean collapses to ``[mean, mean]`` in that case.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        raise EmptySampleSetError("cannot summarize an empty series", operation="summarize")

    n = int(arr.size)
    lo = float(arr.min())
    hi = float(arr.max())
    # Rounding can push the mean one ulp outside the observed range.
    mean = min(max(float(arr.mean()), lo), hi)
    std_dev = float(arr.std(ddof=1)) if n > 1 and lo != hi else 0.0
    median = float(np.median(arr))
    cv = std_dev / mean if mean != 0 else 0.0

    if std_dev > 0.0:
        t_crit = float(sp_stats.t.ppf(0.5 + CI_CONFIDENCE / 2.0, n - 1))
        margin = t_crit * std_dev / math.sqrt(n)
    else:
        margin = 0.0

    return SummaryStatistics(
        count=n,
        mean=mean,
        std_dev=std_dev,
        min=lo,
        max=hi,
        median=median,
        coefficient_of_variation=cv,
        ci95=ConfidenceInterval(lower=mean - margin, upper=mean + margin),
    )


@dataclass(frozen=True)
class WelchTestResult:
    """One-tailed Welch test for ``current mean > baseline mean``."""

    t_statistic: float
    degrees_of_freedom: float
    p_value: float
    mean_difference: float
    standard_error: float
    confidence_interval: ConfidenceInterval


def welch_t_test(
    current: SummaryStatistics,
    baseline: SummaryStatistics,
    *,
    significance_level: float = 0.05,
) -> WelchTestResult:
    """
    Run Welch's unequal-variance t-test on two summaries.

    Both summaries need at least two values and at least one of them a non-zero
    variance; callers route the degenerate cases elsewhere. The returned
    ``confidence_interval`` is the two-sided ``1 - significance_level`` interval
    of ``current.mean - baseline.mean``.
    """
    var_c = current.variance / current.count
    var_b = baseline.variance / baseline.count
    se_sq = var_c + var_b
    standard_error = math.sqrt(se_sq)
    diff = current.mean - baseline.mean

    t_stat = diff / standard_error
    df = se_sq * se_sq / (
        (var_c * var_c) / (current.count - 1) + (var_b * var_b) / (baseline.count - 1)
    )
    p_value = float(sp_stats.t.sf(t_stat, df))

    t_crit = float(sp_stats.t.ppf(1.0 - significance_level / 2.0, df))
    margin = t_crit * standard_error

    return WelchTestResult(
        t_statistic=float(t_stat),
        degrees_of_freedom=float(df),
        p_value=p_value,
        mean_difference=diff,
        standard_error=standard_error,
        confidence_interval=ConfidenceInterval(lower=diff - margin, upper=diff + margin),
    )
