"""Plain-text rendering of measurement sets and regression verdicts."""

from __future__ import annotations

from .measurement import MeasurementSet, format_timestamp
from .types import DecisionBranch, RegressionVerdict, Strategy

_RULE = "=" * 60


def _fmt_ms(value: float) -> str:
    return f"{value:.6f} ms"


def _workload_line(measurement_set: MeasurementSet) -> str:
    workload = measurement_set.workload
    line = f"{workload.name} ({workload.kind})"
    if workload.description:
        line += f" - {workload.description}"
    return line


def _metric_lines(measurement_set: MeasurementSet) -> list[str]:
    lines: list[str] = []
    for name, stats in measurement_set.metric_statistics.items():
        lines.append(
            f"  {name}: mean {stats.mean:.4f}, std {stats.std_dev:.4f}, "
            f"range [{stats.min:.4f}, {stats.max:.4f}]"
        )
    if measurement_set.partial_metrics:
        lines.append(
            "  not reported by every sample: " + ", ".join(measurement_set.partial_metrics)
        )
    return lines


def format_summary(measurement_set: MeasurementSet) -> str:
    """Render one measurement set, e.g. after a baseline update."""
    timing = measurement_set.timing
    lines = [
        "Measurement Summary",
        _RULE,
        f"Workload:     {_workload_line(measurement_set)}",
        f"Device:       {measurement_set.device_id}",
        f"Captured at:  {format_timestamp(measurement_set.captured_at)}",
        f"Samples:      {timing.count}",
        f"Mean:         {_fmt_ms(timing.mean)}",
        f"Std dev:      {_fmt_ms(timing.std_dev)}",
        f"Range:        [{timing.min:.6f}, {timing.max:.6f}] ms",
        f"Median:       {_fmt_ms(timing.median)}",
        f"CV:           {timing.coefficient_of_variation:.2%} ({timing.quality.value})",
        f"95% CI:       [{timing.ci95.lower:.6f}, {timing.ci95.upper:.6f}] ms",
    ]
    metric_lines = _metric_lines(measurement_set)
    if metric_lines:
        lines.append("Secondary metrics:")
        lines.extend(metric_lines)
    return "\n".join(lines)


def _strategy_line(verdict: RegressionVerdict) -> str:
    if verdict.strategy is Strategy.THRESHOLD:
        return f"threshold (max slowdown {verdict.threshold:.2%})"
    line = f"statistical (significance level {verdict.significance_level:g})"
    if verdict.branch is DecisionBranch.SMALL_SAMPLE_FALLBACK and verdict.threshold is not None:
        line += f", small-sample fallback threshold {verdict.threshold:.2%}"
    return line


def _decision_lines(verdict: RegressionVerdict) -> list[str]:
    lines = [f"Decision:       {verdict.branch.value}"]
    if verdict.t_statistic is not None and verdict.degrees_of_freedom is not None:
        lines.append(
            f"t statistic:    {verdict.t_statistic:.4f} (df {verdict.degrees_of_freedom:.2f})"
        )
    if verdict.p_value is not None:
        lines.append(f"p-value:        {verdict.p_value:.6g} (one-tailed, current slower)")
    if verdict.confidence_interval is not None and verdict.significance_level is not None:
        ci = verdict.confidence_interval
        lines.append(
            f"{1.0 - verdict.significance_level:.0%} CI of delta: [{ci.lower:+.6f}, {ci.upper:+.6f}] ms"
        )
    return lines


def format_report(
    current: MeasurementSet,
    baseline: MeasurementSet,
    verdict: RegressionVerdict,
) -> str:
    """Render a comparison of ``current`` against ``baseline``.

    The output is deterministic for identical inputs and ends with the
    verdict tag, so it can be diffed or grepped in CI logs.
    """
    lines = [
        "Performance Regression Report",
        _RULE,
        f"Workload:       {_workload_line(current)}",
        f"Baseline:       device {baseline.device_id}, {baseline.count} samples, "
        f"captured {format_timestamp(baseline.captured_at)}",
        f"Current:        device {current.device_id}, {current.count} samples, "
        f"captured {format_timestamp(current.captured_at)}",
    ]
    if baseline.device_id != current.device_id:
        lines.append("Warning:        runs were captured on different devices")
    lines.extend(
        [
            f"Baseline mean:  {_fmt_ms(baseline.mean)} (std {baseline.std_dev:.6f})",
            f"Current mean:   {_fmt_ms(current.mean)} (std {current.std_dev:.6f})",
            f"Delta:          {verdict.mean_difference_ms:+.6f} ms ({verdict.percent_delta:+.2%})",
            f"Strategy:       {_strategy_line(verdict)}",
        ]
    )
    lines.extend(_decision_lines(verdict))

    if verdict.metric_comparisons:
        lines.append("Secondary metrics (informational):")
        for item in verdict.metric_comparisons:
            lines.append(
                f"  {item.name}: {item.baseline:.4f} -> {item.current:.4f} "
                f"({item.change:+.4f}, {item.change_percent:+.2f}%)"
            )
    if verdict.is_improvement:
        lines.append("Note:           current run is significantly faster than baseline")

    lines.append(_RULE)
    lines.append(verdict.reason)
    lines.append(f"Result: {verdict.status.value}")
    return "\n".join(lines)
