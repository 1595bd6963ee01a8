"""
perfbaseline - GPU performance baselines and statistical regression checks.

Simple Usage:
    from perfbaseline import BaselineStore, RecordedSampleSource, check, resolve_workload

    store = BaselineStore(".perfbaseline")
    workload = resolve_workload("graphics-moderate")
    outcome = check(RecordedSampleSource(samples, "apple-m2"), workload, store)
    print(outcome.report)
    raise SystemExit(outcome.exit_code)
"""

from .analyzer import compare, compare_metrics, compare_statistical, compare_threshold
from .config import (
    AnalysisSettings,
    ProjectConfig,
    RunSettings,
    StoreSettings,
    default_store_root,
    discover_config,
    load_config,
)
from .errors import (
    ConfigurationError,
    CorruptDataError,
    EmptySampleSetError,
    IncompatibleSchemaError,
    InvalidBaselineError,
    MissingBaselineError,
    PerfBaselineError,
    SampleCollectionError,
    SampleValidationError,
    WriteFailureError,
)
from .loaders import SampleFile, load_sample_file
from .measurement import MeasurementSet, Sample, build
from .orchestrator import (
    Outcome,
    RecordedSampleSource,
    RunOutcome,
    SampleSource,
    check,
    collect_samples,
    update_baseline,
)
from .report import format_report, format_summary
from .stats import (
    ConfidenceInterval,
    QualityRating,
    SummaryStatistics,
    WelchTestResult,
    summarize,
    welch_t_test,
)
from .store import BaselineStore
from .types import (
    DecisionBranch,
    MetricComparison,
    RegressionVerdict,
    Strategy,
    TestResult,
    VerdictStatus,
)
from .workload import WORKLOAD_PRESETS, WorkloadConfig, WorkloadIdentity, resolve_workload

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("perfbaseline")
except PackageNotFoundError:
    __version__ = "0.1.0.dev0"

__all__ = [
    # Measurements
    "Sample",
    "MeasurementSet",
    "build",
    "SummaryStatistics",
    "ConfidenceInterval",
    "QualityRating",
    "WelchTestResult",
    "summarize",
    "welch_t_test",
    # Workloads
    "WorkloadConfig",
    "WorkloadIdentity",
    "WORKLOAD_PRESETS",
    "resolve_workload",
    # Storage
    "BaselineStore",
    "SampleFile",
    "load_sample_file",
    # Analysis
    "compare",
    "compare_metrics",
    "compare_statistical",
    "compare_threshold",
    "DecisionBranch",
    "MetricComparison",
    "RegressionVerdict",
    "Strategy",
    "TestResult",
    "VerdictStatus",
    "format_report",
    "format_summary",
    # Runs
    "Outcome",
    "RecordedSampleSource",
    "RunOutcome",
    "SampleSource",
    "check",
    "collect_samples",
    "update_baseline",
    # Configuration
    "AnalysisSettings",
    "ProjectConfig",
    "RunSettings",
    "StoreSettings",
    "default_store_root",
    "discover_config",
    "load_config",
    # Errors
    "PerfBaselineError",
    "EmptySampleSetError",
    "SampleValidationError",
    "SampleCollectionError",
    "InvalidBaselineError",
    "MissingBaselineError",
    "IncompatibleSchemaError",
    "CorruptDataError",
    "WriteFailureError",
    "ConfigurationError",
    "__version__",
]
