"""The ``update`` command: record a new baseline from a sample file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from perfbaseline.errors import PerfBaselineError
from perfbaseline.loaders import load_sample_file
from perfbaseline.orchestrator import Outcome, update_baseline

from ._app import app, console
from ._rich_output import key_value_panel
from ._utils import (
    _fail,
    _load_config,
    _resolve_iterations,
    _resolve_source,
    _resolve_store,
    _resolve_workload,
)


@app.command(rich_help_panel="Baselines")
def update(
    samples: Path = typer.Argument(..., help="Recorded samples (JSON, JSON Lines, or YAML)."),
    workload: str | None = typer.Option(
        None, "--workload", "-w", help="Workload preset or name; defaults to the file's."
    ),
    kind: str | None = typer.Option(None, "--kind", help="Workload kind: graphics or compute."),
    device: str | None = typer.Option(None, "--device", "-d", help="Device id override."),
    iterations: int | None = typer.Option(
        None, "--iterations", "-n", min=1, help="Number of samples to use."
    ),
    store_root: Path | None = typer.Option(None, "--store", help="Baseline store directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="perfbaseline.toml path."),
) -> None:
    """Replace the stored baseline for a workload and device.

    [dim]Examples:[/dim]
      perfbaseline update samples.json --workload graphics-moderate
      perfbaseline update run.jsonl -w compute-low --device apple-m2 -n 50
    """
    try:
        project = _load_config(config)
        sample_file = load_sample_file(samples)
        source = _resolve_source(sample_file, device)
        workload_config = _resolve_workload(workload, kind, sample_file)
        count = _resolve_iterations(iterations, project, source)
        store = _resolve_store(project, store_root)
    except PerfBaselineError as exc:
        _fail(exc)

    outcome = update_baseline(source, workload_config, store, count)
    if outcome.outcome is Outcome.ERROR:
        console.print(
            f"[pb.fail]Baseline update failed ({outcome.error_kind}):[/pb.fail] "
            f"{escape(outcome.error_message or '')}"
        )
        raise typer.Exit(code=outcome.exit_code)

    console.print(outcome.report, markup=False, highlight=False)
    console.print(
        key_value_panel(
            {
                "Identity": escape(outcome.identity.key if outcome.identity else "-"),
                "Saved to": escape(str(outcome.baseline_path)),
            },
            title="Baseline updated",
            border="pb.border.success",
        )
    )
