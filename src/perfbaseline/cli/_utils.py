"""Shared option resolution for CLI commands."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.markup import escape

from perfbaseline.config import ProjectConfig, discover_config
from perfbaseline.errors import ConfigurationError, EmptySampleSetError
from perfbaseline.loaders import SampleFile
from perfbaseline.orchestrator import RecordedSampleSource
from perfbaseline.store import BaselineStore
from perfbaseline.workload import WorkloadConfig, WorkloadIdentity, resolve_workload

from ._app import console

EXIT_ERROR = 2


class OutputFormat(str, Enum):
    RICH = "rich"
    JSON = "json"


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[pb.fail]Error:[/pb.fail] {escape(str(exc))}")
    raise typer.Exit(code=EXIT_ERROR) from None


def _load_config(config_path: Path | None) -> ProjectConfig:
    try:
        return discover_config(config_path)
    except FileNotFoundError as exc:
        raise ConfigurationError(str(exc), operation="load_config") from None


def _resolve_store(config: ProjectConfig, store_root: Path | None) -> BaselineStore:
    return BaselineStore(store_root if store_root is not None else config.store.root)


def _resolve_workload(
    name: str | None, kind: str | None, sample_file: SampleFile | None = None
) -> WorkloadConfig:
    workload = name or (sample_file.workload if sample_file else None)
    if not workload:
        raise ConfigurationError("no workload given; pass --workload or set it in the sample file")
    return resolve_workload(workload, kind=kind or (sample_file.kind if sample_file else None))


def _resolve_identity(workload: str, kind: str | None, device: str) -> WorkloadIdentity:
    return WorkloadIdentity.for_workload(_resolve_workload(workload, kind), device)


def _resolve_source(sample_file: SampleFile, device: str | None) -> RecordedSampleSource:
    device_id = device or sample_file.device_id
    if not device_id:
        raise ConfigurationError(
            f"no device id for {sample_file.path}; pass --device or set device_id in the file"
        )
    return RecordedSampleSource(sample_file.samples, device_id)


def _resolve_iterations(
    option: int | None, config: ProjectConfig, source: RecordedSampleSource
) -> int:
    """``--iterations`` wins, then ``[run] iterations``, then every recorded sample."""
    if option is not None:
        return option
    run_raw = config.raw.get("run", {})
    if isinstance(run_raw, dict) and "iterations" in run_raw:
        return config.run.iterations
    if len(source) == 0:
        raise EmptySampleSetError("the sample file holds no samples", operation="collect")
    return len(source)
