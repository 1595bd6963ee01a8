"""Tests for perfbaseline.toml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from perfbaseline.config import (
    DEFAULT_ITERATIONS,
    AnalysisSettings,
    ProjectConfig,
    default_store_root,
    discover_config,
    load_config,
)
from perfbaseline.errors import ConfigurationError
from perfbaseline.types import Strategy


@pytest.fixture()
def sample_toml(tmp_path: Path) -> Path:
    """Write a complete perfbaseline.toml and return its path."""
    content = """\
[store]
root = "perf-data"

[analysis]
strategy = "threshold"
threshold = 0.1
significance_level = 0.01
min_samples = 5

[run]
iterations = 25
"""
    toml_path = tmp_path / "perfbaseline.toml"
    toml_path.write_text(content, encoding="utf-8")
    return toml_path


def test_load_config_reads_all_sections(sample_toml: Path) -> None:
    config = load_config(sample_toml)
    assert isinstance(config, ProjectConfig)
    assert config.analysis.strategy is Strategy.THRESHOLD
    assert config.analysis.threshold == 0.1
    assert config.analysis.significance_level == 0.01
    assert config.analysis.min_samples == 5
    assert config.analysis.fallback_threshold == 0.1
    assert config.run.iterations == 25
    assert config.store.root == (sample_toml.parent / "perf-data").resolve()
    assert config.source == sample_toml


def test_load_config_defaults_for_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "perfbaseline.toml"
    path.write_text("", encoding="utf-8")
    config = load_config(path)
    assert config.analysis == AnalysisSettings()
    assert config.run.iterations == DEFAULT_ITERATIONS


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_load_config_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "perfbaseline.toml"
    path.write_text("[analysis\nthreshold = ", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="invalid TOML"):
        load_config(path)


@pytest.mark.parametrize(
    "body",
    [
        '[analysis]\nstrategy = "bayesian"\n',
        "[analysis]\nthreshold = 0\n",
        "[analysis]\nsignificance_level = 1.5\n",
        "[analysis]\nmin_samples = 1\n",
        '[analysis]\nthreshold = "five"\n',
        "[run]\niterations = 0\n",
        'analysis = "flat"\n',
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, body: str) -> None:
    path = tmp_path / "perfbaseline.toml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError, match="PB_CONFIGURATION"):
        load_config(path)


def test_default_store_root_uses_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PERFBASELINE_HOME", str(tmp_path / "custom"))
    assert default_store_root() == (tmp_path / "custom").resolve()


def test_default_store_root_falls_back_to_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("PERFBASELINE_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    assert default_store_root() == (tmp_path / ".perfbaseline").resolve()


def test_discover_config_prefers_cwd_file(monkeypatch: pytest.MonkeyPatch, sample_toml: Path) -> None:
    monkeypatch.chdir(sample_toml.parent)
    assert discover_config().run.iterations == 25


def test_discover_config_defaults_without_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    config = discover_config()
    assert config.source is None
    assert config.analysis.strategy is Strategy.STATISTICAL
