"""Read-only commands: show, list, history."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.markup import escape

from perfbaseline.errors import PerfBaselineError
from perfbaseline.measurement import format_timestamp
from perfbaseline.report import format_summary

from ._app import app, console
from ._rich_output import status_table
from ._utils import OutputFormat, _fail, _load_config, _resolve_identity, _resolve_store


@app.command(rich_help_panel="Baselines")
def show(
    workload: str = typer.Option(..., "--workload", "-w", help="Workload preset or name."),
    device: str = typer.Option(..., "--device", "-d", help="Device id."),
    kind: str | None = typer.Option(None, "--kind", help="Workload kind: graphics or compute."),
    store_root: Path | None = typer.Option(None, "--store", help="Baseline store directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="perfbaseline.toml path."),
    format: OutputFormat = typer.Option(
        OutputFormat.RICH, "--format", "-f", case_sensitive=False, help="Output format."
    ),
) -> None:
    """Display the stored baseline for a workload and device."""
    try:
        project = _load_config(config)
        store = _resolve_store(project, store_root)
        baseline = store.load(_resolve_identity(workload, kind, device))
    except PerfBaselineError as exc:
        _fail(exc)

    if format == OutputFormat.JSON:
        typer.echo(json.dumps(baseline.to_dict(), indent=2))
        return
    console.print(format_summary(baseline), markup=False, highlight=False)


@app.command("list", rich_help_panel="Baselines")
def list_baselines(
    store_root: Path | None = typer.Option(None, "--store", help="Baseline store directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="perfbaseline.toml path."),
) -> None:
    """List every workload identity with a stored baseline."""
    try:
        project = _load_config(config)
    except PerfBaselineError as exc:
        _fail(exc)
    store = _resolve_store(project, store_root)

    keys = store.list_identities()
    if not keys:
        console.print(f"[pb.muted]No baselines stored under {escape(str(store.root))}[/pb.muted]")
        return
    rows = [("info", escape(key)) for key in keys]
    console.print(status_table(rows, columns=("Identity",), title=f"Baselines ({len(keys)})"))


@app.command(rich_help_panel="Regression Checks")
def history(
    workload: str = typer.Option(..., "--workload", "-w", help="Workload preset or name."),
    device: str = typer.Option(..., "--device", "-d", help="Device id."),
    kind: str | None = typer.Option(None, "--kind", help="Workload kind: graphics or compute."),
    limit: int = typer.Option(20, "--limit", "-l", min=0, help="Show only the newest N runs."),
    store_root: Path | None = typer.Option(None, "--store", help="Baseline store directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="perfbaseline.toml path."),
) -> None:
    """Show recorded regression checks, oldest first."""
    try:
        project = _load_config(config)
        store = _resolve_store(project, store_root)
        identity = _resolve_identity(workload, kind, device)
        results = store.read_history(identity, limit=limit)
    except PerfBaselineError as exc:
        _fail(exc)

    if not results:
        console.print(f"[pb.muted]No recorded checks for {escape(str(identity))}[/pb.muted]")
        return

    rows = []
    for result in results:
        verdict = result.verdict
        rows.append(
            (
                "pass" if verdict.passed else "fail",
                format_timestamp(result.recorded_at),
                verdict.status.value,
                f"{verdict.percent_delta:+.2%}",
                "-" if verdict.p_value is None else f"{verdict.p_value:.4g}",
                verdict.branch.value,
            )
        )
    console.print(
        status_table(
            rows,
            columns=("Recorded", "Result", "Delta", "p-value", "Decision"),
            title=escape(f"History: {identity}"),
        )
    )
