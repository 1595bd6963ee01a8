"""The ``check`` command: compare a sample file against the stored baseline."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import typer
from rich.markup import escape

from perfbaseline.config import AnalysisSettings, ProjectConfig
from perfbaseline.errors import ConfigurationError, PerfBaselineError
from perfbaseline.loaders import load_sample_file
from perfbaseline.orchestrator import Outcome, check as run_check
from perfbaseline.types import Strategy

from ._app import app, console
from ._rich_output import result_banner
from ._utils import (
    OutputFormat,
    _fail,
    _load_config,
    _resolve_iterations,
    _resolve_source,
    _resolve_store,
    _resolve_workload,
)


def _analysis_settings(
    project: ProjectConfig,
    strategy: str | None,
    threshold: float | None,
    significance_level: float | None,
) -> AnalysisSettings:
    settings = project.analysis
    changes: dict[str, object] = {}
    if strategy is not None:
        try:
            changes["strategy"] = Strategy(strategy.strip().lower())
        except ValueError:
            choices = ", ".join(item.value for item in Strategy)
            raise ConfigurationError(
                f"--strategy must be one of: {choices}; got {strategy!r}"
            ) from None
    if threshold is not None:
        changes["threshold"] = threshold
        analysis_raw = project.raw.get("analysis", {})
        if not (isinstance(analysis_raw, dict) and "fallback_threshold" in analysis_raw):
            changes["fallback_threshold"] = threshold
    if significance_level is not None:
        changes["significance_level"] = significance_level
    return replace(settings, **changes) if changes else settings


@app.command("check", rich_help_panel="Regression Checks")
def check(
    samples: Path = typer.Argument(..., help="Recorded samples (JSON, JSON Lines, or YAML)."),
    workload: str | None = typer.Option(
        None, "--workload", "-w", help="Workload preset or name; defaults to the file's."
    ),
    kind: str | None = typer.Option(None, "--kind", help="Workload kind: graphics or compute."),
    device: str | None = typer.Option(None, "--device", "-d", help="Device id override."),
    iterations: int | None = typer.Option(
        None, "--iterations", "-n", min=1, help="Number of samples to use."
    ),
    strategy: str | None = typer.Option(
        None, "--strategy", "-s", help="Comparison strategy: statistical or threshold."
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", "-t", help="Allowed slowdown as a fraction, e.g. 0.05."
    ),
    significance_level: float | None = typer.Option(
        None, "--significance-level", "--alpha", help="Significance level for Welch's test."
    ),
    store_root: Path | None = typer.Option(None, "--store", help="Baseline store directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="perfbaseline.toml path."),
    format: OutputFormat = typer.Option(
        OutputFormat.RICH, "--format", "-f", case_sensitive=False, help="Output format."
    ),
) -> None:
    """Compare recorded samples against the baseline; exit 1 on a regression.

    Exit codes: 0 pass, 1 regression detected, 2 operational error.

    [dim]Examples:[/dim]
      perfbaseline check samples.json --workload graphics-moderate
      perfbaseline check run.jsonl -w compute-low --strategy threshold -t 0.1
    """
    try:
        project = _load_config(config)
        settings = _analysis_settings(project, strategy, threshold, significance_level)
        sample_file = load_sample_file(samples)
        source = _resolve_source(sample_file, device)
        workload_config = _resolve_workload(workload, kind, sample_file)
        count = _resolve_iterations(iterations, project, source)
        store = _resolve_store(project, store_root)
    except PerfBaselineError as exc:
        _fail(exc)

    outcome = run_check(source, workload_config, store, settings, count)

    if format == OutputFormat.JSON:
        payload = outcome.to_dict()
        payload["report"] = outcome.report
        typer.echo(json.dumps(payload, indent=2))
        if outcome.exit_code:
            raise typer.Exit(code=outcome.exit_code)
        return

    if outcome.outcome is Outcome.ERROR:
        console.print(
            f"[pb.fail]Regression check failed ({outcome.error_kind}):[/pb.fail] "
            f"{escape(outcome.error_message or '')}"
        )
        raise typer.Exit(code=outcome.exit_code)

    console.print(outcome.report, markup=False, highlight=False)
    verdict = outcome.verdict
    lines = [escape(verdict.reason)] if verdict else []
    if outcome.history_path is None:
        lines.append("[pb.warn]Test result was not recorded in the history.[/pb.warn]")
    console.print(result_banner(passed=outcome.outcome is Outcome.PASS, lines=lines))
    if outcome.exit_code:
        raise typer.Exit(code=outcome.exit_code)
