"""perfbaseline.toml configuration loader.

Parses ``perfbaseline.toml`` into the frozen settings consumed by the analyzer,
the baseline store, and the command-line driver. Every key is optional.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redefine]

from .errors import ConfigurationError
from .types import Strategy

DEFAULT_CONFIG_FILENAME = "perfbaseline.toml"
STORE_ROOT_ENV = "PERFBASELINE_HOME"
DEFAULT_STORE_DIRNAME = ".perfbaseline"

DEFAULT_THRESHOLD = 0.05
DEFAULT_SIGNIFICANCE_LEVEL = 0.05
DEFAULT_MIN_SAMPLES = 2
DEFAULT_ITERATIONS = 100


def default_store_root() -> Path:
    """Return the store root, preferring the ``PERFBASELINE_HOME`` override."""
    override = os.environ.get(STORE_ROOT_ENV, "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return (Path.cwd() / DEFAULT_STORE_DIRNAME).resolve()


@dataclass(frozen=True)
class AnalysisSettings:
    """Comparison parameters from ``[analysis]``.

    ``min_samples`` is the smallest per-run sample count for which the
    statistical strategy runs Welch's test; below it the verdict falls back to
    the threshold rule with ``fallback_threshold``.
    """

    strategy: Strategy = Strategy.STATISTICAL
    threshold: float = DEFAULT_THRESHOLD
    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL
    min_samples: int = DEFAULT_MIN_SAMPLES
    fallback_threshold: float = DEFAULT_THRESHOLD

    def __post_init__(self) -> None:
        if not self.threshold > 0:
            raise ConfigurationError(f"threshold must be > 0, got {self.threshold!r}")
        if not self.fallback_threshold > 0:
            raise ConfigurationError(
                f"fallback_threshold must be > 0, got {self.fallback_threshold!r}"
            )
        if not 0.0 < self.significance_level < 1.0:
            raise ConfigurationError(
                f"significance_level must be in (0, 1), got {self.significance_level!r}"
            )
        if self.min_samples < 2:
            raise ConfigurationError(
                f"min_samples must be >= 2 (variance needs two samples), got {self.min_samples!r}"
            )


@dataclass(frozen=True)
class StoreSettings:
    """Baseline store location from ``[store]``."""

    root: Path = field(default_factory=default_store_root)


@dataclass(frozen=True)
class RunSettings:
    """Sample collection parameters from ``[run]``."""

    iterations: int = DEFAULT_ITERATIONS

    def __post_init__(self) -> None:
        if self.iterations < 1:
            raise ConfigurationError(f"iterations must be >= 1, got {self.iterations!r}")


@dataclass(frozen=True)
class ProjectConfig:
    """Top-level parsed representation of ``perfbaseline.toml``."""

    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    run: RunSettings = field(default_factory=RunSettings)
    source: Path | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"[{name}] must be a table", operation="load_config")
    return value


def _parse_strategy(value: Any) -> Strategy:
    try:
        return Strategy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(item.value for item in Strategy)
        raise ConfigurationError(
            f"analysis.strategy must be one of: {choices}; got {value!r}",
            operation="load_config",
        ) from None


def load_config(path: str | Path = DEFAULT_CONFIG_FILENAME) -> ProjectConfig:
    """Load and parse a ``perfbaseline.toml`` file.

    Parameters
    ----------
    path:
        Path to the TOML configuration file.

    Returns
    -------
    ProjectConfig
        Structured configuration. A relative ``store.root`` is resolved
        against the directory holding the file.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ConfigurationError
        If the file is not valid TOML or a value is malformed.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid TOML in {config_path}: {exc}") from exc

    analysis_raw = _section(raw, "analysis")
    store_raw = _section(raw, "store")
    run_raw = _section(raw, "run")

    try:
        analysis = AnalysisSettings(
            strategy=_parse_strategy(analysis_raw.get("strategy", Strategy.STATISTICAL.value)),
            threshold=float(analysis_raw.get("threshold", DEFAULT_THRESHOLD)),
            significance_level=float(
                analysis_raw.get("significance_level", DEFAULT_SIGNIFICANCE_LEVEL)
            ),
            min_samples=int(analysis_raw.get("min_samples", DEFAULT_MIN_SAMPLES)),
            fallback_threshold=float(
                analysis_raw.get(
                    "fallback_threshold", analysis_raw.get("threshold", DEFAULT_THRESHOLD)
                )
            ),
        )
        run = RunSettings(iterations=int(run_raw.get("iterations", DEFAULT_ITERATIONS)))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"malformed value in {config_path}: {exc}") from exc

    root_raw = store_raw.get("root")
    if root_raw is None:
        store = StoreSettings()
    else:
        root = Path(str(root_raw)).expanduser()
        if not root.is_absolute():
            root = (config_path.parent / root).resolve()
        store = StoreSettings(root=root)

    return ProjectConfig(
        analysis=analysis,
        store=store,
        run=run,
        source=config_path,
        raw=raw,
    )


def discover_config(path: Path | None = None) -> ProjectConfig:
    """Load ``path`` if given, else ``./perfbaseline.toml`` when present, else defaults."""
    if path is not None:
        return load_config(path)
    candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if candidate.exists():
        return load_config(candidate)
    return ProjectConfig()
