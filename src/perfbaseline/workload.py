"""Workload descriptors, identities, and named presets."""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import ConfigurationError

WORKLOAD_KINDS = ("graphics", "compute")

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case ``value`` and collapse anything non-alphanumeric to ``-``."""
    slug = _SLUG_PATTERN.sub("-", value.strip().lower()).strip("-")
    return slug or "unnamed"


def freeze_json(value: Any) -> Any:
    """Return a read-only copy of a JSON-like value: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze_json(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze_json(item) for item in value)
    return value


def thaw_json(value: Any) -> Any:
    """Inverse of ``freeze_json``: fresh dicts and lists safe to mutate or serialize."""
    if isinstance(value, Mapping):
        return {k: thaw_json(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw_json(item) for item in value]
    return value


@dataclass(frozen=True)
class WorkloadConfig:
    """Opaque description of the benchmarked workload.

    ``parameters`` must stay JSON-compatible (numbers, strings, lists, nested
    objects) so it survives a baseline save/load cycle unchanged. It is stored
    as a read-only copy, carried into reports, and never used by the statistics.
    """

    name: str
    kind: str = "graphics"
    parameters: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ConfigurationError("workload name must be non-empty")
        if self.kind not in WORKLOAD_KINDS:
            raise ConfigurationError(
                f"workload kind must be one of {WORKLOAD_KINDS}, got {self.kind!r}"
            )
        object.__setattr__(self, "parameters", freeze_json(self.parameters))

    def __hash__(self) -> int:
        params = json.dumps(thaw_json(self.parameters), sort_keys=True)
        return hash((self.name, self.kind, params, self.description))

    @property
    def label(self) -> str:
        return self.description or self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "parameters": thaw_json(self.parameters),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> WorkloadConfig:
        parameters = payload.get("parameters", {})
        if not isinstance(parameters, dict):
            raise ValueError("workload.parameters must be an object")
        return cls(
            name=str(payload["name"]),
            kind=str(payload.get("kind", "graphics")),
            parameters=parameters,
            description=str(payload.get("description", "")),
        )


@dataclass(frozen=True)
class WorkloadIdentity:
    """Key under which exactly one baseline is stored: workload plus device."""

    workload: str
    kind: str
    device_id: str

    @property
    def digest(self) -> str:
        raw = json.dumps([self.kind, self.workload, self.device_id])
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:10]

    @property
    def key(self) -> str:
        """Filesystem-safe and unique: readable slugs plus a digest of the raw fields."""
        return (
            f"{slugify(self.kind)}__{slugify(self.workload)}__"
            f"{slugify(self.device_id)}__{self.digest}"
        )

    def __str__(self) -> str:
        return f"{self.workload} ({self.kind}) on {self.device_id}"

    @classmethod
    def for_workload(cls, workload: WorkloadConfig, device_id: str) -> WorkloadIdentity:
        return cls(workload=workload.name, kind=workload.kind, device_id=device_id)


def _graphics(
    name: str,
    description: str,
    *,
    width: int,
    height: int,
    triangle_count: int,
    geometry_complexity: int,
) -> WorkloadConfig:
    return WorkloadConfig(
        name=name,
        kind="graphics",
        description=description,
        parameters={
            "width": width,
            "height": height,
            "triangle_count": triangle_count,
            "geometry_complexity": geometry_complexity,
            "resolution_scale": 1.0,
        },
    )


def _compute(
    name: str,
    description: str,
    *,
    grid: int,
    threadgroups: int,
    complexity: int,
) -> WorkloadConfig:
    return WorkloadConfig(
        name=name,
        kind="compute",
        description=description,
        parameters={
            "width": grid,
            "height": grid,
            "threadgroup_size": [16, 16, 1],
            "threadgroup_count": [threadgroups, threadgroups, 1],
            "workload_complexity": complexity,
        },
    )


WORKLOAD_PRESETS: dict[str, WorkloadConfig] = {
    "graphics-low": _graphics(
        "graphics-low",
        "Low Resolution (720p, Mobile Testing)",
        width=1280,
        height=720,
        triangle_count=4000,
        geometry_complexity=6,
    ),
    "graphics-moderate": _graphics(
        "graphics-moderate",
        "Moderate (1080p, Daily Development)",
        width=1920,
        height=1080,
        triangle_count=4000,
        geometry_complexity=7,
    ),
    "graphics-complex": _graphics(
        "graphics-complex",
        "Complex (1440p, Feature Development)",
        width=2560,
        height=1440,
        triangle_count=5000,
        geometry_complexity=9,
    ),
    "graphics-high": _graphics(
        "graphics-high",
        "High Resolution (4K, Display Scaling)",
        width=3840,
        height=2160,
        triangle_count=8000,
        geometry_complexity=9,
    ),
    "graphics-max": _graphics(
        "graphics-max",
        "Max Resolution (8K, Max Resolution Testing)",
        width=7680,
        height=4320,
        triangle_count=10000,
        geometry_complexity=10,
    ),
    "compute-low": _compute(
        "compute-low", "Compute Low (128x128, Basic Compute Testing)", grid=128, threadgroups=8, complexity=3
    ),
    "compute-moderate": _compute(
        "compute-moderate",
        "Compute Moderate (256x256, Daily Compute Testing)",
        grid=256,
        threadgroups=16,
        complexity=5,
    ),
    "compute-complex": _compute(
        "compute-complex",
        "Compute Complex (384x384, Feature Compute Testing)",
        grid=384,
        threadgroups=24,
        complexity=7,
    ),
    "compute-high": _compute(
        "compute-high",
        "Compute High (512x512, High-Performance Compute Testing)",
        grid=512,
        threadgroups=32,
        complexity=8,
    ),
    "compute-max": _compute(
        "compute-max",
        "Compute Max (1024x1024, Max Compute Testing)",
        grid=1024,
        threadgroups=64,
        complexity=10,
    ),
}


def resolve_workload(name: str, *, kind: str | None = None) -> WorkloadConfig:
    """Return the named preset, or an ad-hoc descriptor for unknown names."""
    preset = WORKLOAD_PRESETS.get(name)
    if preset is not None:
        if kind is not None and kind != preset.kind:
            raise ConfigurationError(
                f"workload preset {name!r} is a {preset.kind} workload, not {kind}"
            )
        return preset
    return WorkloadConfig(name=name, kind=kind or "graphics")
