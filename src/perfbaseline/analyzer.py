"""Regression analysis: threshold and Welch t-test strategies."""

from __future__ import annotations

import logging

from .config import (
    DEFAULT_MIN_SAMPLES,
    DEFAULT_SIGNIFICANCE_LEVEL,
    DEFAULT_THRESHOLD,
    AnalysisSettings,
)
from .errors import ConfigurationError, InvalidBaselineError
from .measurement import MeasurementSet
from .stats import welch_t_test
from .types import (
    DecisionBranch,
    MetricComparison,
    RegressionVerdict,
    Strategy,
    VerdictStatus,
)

logger = logging.getLogger(__name__)


def _check_baseline(baseline: MeasurementSet, operation: str) -> None:
    if not baseline.mean > 0:
        raise InvalidBaselineError(
            f"baseline mean must be positive to compute a relative delta, got {baseline.mean!r}",
            operation=operation,
            identity=baseline.identity.key,
        )


def _percent_delta(current: MeasurementSet, baseline: MeasurementSet) -> float:
    return (current.mean - baseline.mean) / baseline.mean


def compare_metrics(
    current: MeasurementSet, baseline: MeasurementSet
) -> tuple[MetricComparison, ...]:
    """Pair up secondary metrics aggregated in both runs."""
    shared = sorted(set(current.metric_statistics) & set(baseline.metric_statistics))
    return tuple(
        MetricComparison(
            name=name,
            baseline=baseline.metric_statistics[name].mean,
            current=current.metric_statistics[name].mean,
        )
        for name in shared
    )


def _threshold_decision(
    current: MeasurementSet,
    baseline: MeasurementSet,
    *,
    threshold: float,
    strategy: Strategy,
    branch: DecisionBranch,
    significance_level: float | None = None,
    note: str = "",
) -> RegressionVerdict:
    delta = _percent_delta(current, baseline)
    failed = delta > threshold
    comparison = ">" if failed else "<="
    reason = (
        f"{'FAIL' if failed else 'PASS'}: mean delta {delta:+.4%} {comparison} "
        f"threshold {threshold:.4%}"
    )
    if note:
        reason = f"{reason} ({note})"
    return RegressionVerdict(
        status=VerdictStatus.FAIL if failed else VerdictStatus.PASS,
        strategy=strategy,
        branch=branch,
        mean_difference_ms=current.mean - baseline.mean,
        percent_delta=delta,
        reason=reason,
        threshold=threshold,
        significance_level=significance_level,
        metric_comparisons=compare_metrics(current, baseline),
    )


def compare_threshold(
    current: MeasurementSet,
    baseline: MeasurementSet,
    threshold: float = DEFAULT_THRESHOLD,
) -> RegressionVerdict:
    """
    Fail when the current mean is slower than baseline by more than ``threshold``.

    ``threshold`` is a fraction (0.05 allows 5%). A delta exactly at the
    threshold passes, and faster runs always pass. Sample counts and variances
    are ignored.
    """
    if not threshold > 0:
        raise ConfigurationError(f"threshold must be > 0, got {threshold!r}")
    _check_baseline(baseline, "compare_threshold")

    verdict = _threshold_decision(
        current,
        baseline,
        threshold=threshold,
        strategy=Strategy.THRESHOLD,
        branch=DecisionBranch.THRESHOLD,
    )
    logger.debug("Threshold comparison for %s: %s", current.identity.key, verdict.reason)
    return verdict


def compare_statistical(
    current: MeasurementSet,
    baseline: MeasurementSet,
    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL,
    *,
    min_samples: int = DEFAULT_MIN_SAMPLES,
    fallback_threshold: float = DEFAULT_THRESHOLD,
) -> RegressionVerdict:
    """
    One-tailed Welch's t-test for "current is slower than baseline".

    Fails only when the mean difference is positive and the one-tailed p-value
    is below ``significance_level``. Degenerate inputs take a documented branch
    recorded on the verdict:

    - either run has fewer than ``min_samples`` samples: threshold rule with
      ``fallback_threshold`` (``SMALL_SAMPLE_FALLBACK``);
    - both runs have zero variance: the difference is exact, so identical means
      pass, a slower mean fails with p = 0 and a faster one passes with p = 1
      (``ZERO_VARIANCE``).
    """
    if not 0.0 < significance_level < 1.0:
        raise ConfigurationError(
            f"significance_level must be in (0, 1), got {significance_level!r}"
        )
    if min_samples < 2:
        raise ConfigurationError(f"min_samples must be >= 2, got {min_samples!r}")
    if not fallback_threshold > 0:
        raise ConfigurationError(f"fallback_threshold must be > 0, got {fallback_threshold!r}")
    _check_baseline(baseline, "compare_statistical")

    key = current.identity.key
    if current.count < min_samples or baseline.count < min_samples:
        logger.debug(
            "Small-sample fallback for %s: current n=%d, baseline n=%d, min_samples=%d",
            key,
            current.count,
            baseline.count,
            min_samples,
        )
        return _threshold_decision(
            current,
            baseline,
            threshold=fallback_threshold,
            strategy=Strategy.STATISTICAL,
            branch=DecisionBranch.SMALL_SAMPLE_FALLBACK,
            significance_level=significance_level,
            note=(
                f"fewer than {min_samples} samples "
                f"(current={current.count}, baseline={baseline.count}); t-test skipped"
            ),
        )

    diff = current.mean - baseline.mean
    delta = _percent_delta(current, baseline)
    metrics = compare_metrics(current, baseline)

    if current.std_dev == 0.0 and baseline.std_dev == 0.0:
        failed = diff > 0
        p_value = 0.0 if failed else (0.5 if diff == 0 else 1.0)
        reason = (
            f"FAIL: zero-variance runs, current slower by {diff:+.6f} ms"
            if failed
            else f"PASS: zero-variance runs, mean difference {diff:+.6f} ms"
        )
        logger.debug("Zero-variance decision for %s: %s", key, reason)
        return RegressionVerdict(
            status=VerdictStatus.FAIL if failed else VerdictStatus.PASS,
            strategy=Strategy.STATISTICAL,
            branch=DecisionBranch.ZERO_VARIANCE,
            mean_difference_ms=diff,
            percent_delta=delta,
            reason=reason,
            significance_level=significance_level,
            p_value=p_value,
            metric_comparisons=metrics,
        )

    result = welch_t_test(current.timing, baseline.timing, significance_level=significance_level)
    failed = diff > 0 and result.p_value < significance_level
    comparison = "<" if result.p_value < significance_level else ">="
    reason = (
        f"{'FAIL' if failed else 'PASS'}: one-tailed p {result.p_value:.6g} {comparison} "
        f"alpha {significance_level:.4g} (t={result.t_statistic:.4f}, "
        f"df={result.degrees_of_freedom:.2f}, delta {delta:+.4%})"
    )
    logger.debug("Welch decision for %s: %s", key, reason)
    return RegressionVerdict(
        status=VerdictStatus.FAIL if failed else VerdictStatus.PASS,
        strategy=Strategy.STATISTICAL,
        branch=DecisionBranch.WELCH_T_TEST,
        mean_difference_ms=diff,
        percent_delta=delta,
        reason=reason,
        significance_level=significance_level,
        t_statistic=result.t_statistic,
        degrees_of_freedom=result.degrees_of_freedom,
        p_value=result.p_value,
        confidence_interval=result.confidence_interval,
        metric_comparisons=metrics,
    )


def compare(
    current: MeasurementSet,
    baseline: MeasurementSet,
    settings: AnalysisSettings | None = None,
) -> RegressionVerdict:
    """Dispatch to the strategy selected in ``settings``."""
    settings = settings or AnalysisSettings()
    if settings.strategy is Strategy.THRESHOLD:
        return compare_threshold(current, baseline, settings.threshold)
    return compare_statistical(
        current,
        baseline,
        settings.significance_level,
        min_samples=settings.min_samples,
        fallback_threshold=settings.fallback_threshold,
    )
