"""Custom exceptions for perfbaseline."""

from __future__ import annotations


class PerfBaselineError(RuntimeError):
    """Base exception for measurement, storage, and analysis failures.

    ``error_code`` is the stable kind reported in run outcomes. ``operation``
    and ``identity`` are optional context folded into the message so a failure
    can be diagnosed without re-running.
    """

    error_code = "PB_ERROR"

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        identity: str | None = None,
    ) -> None:
        self.operation = operation
        self.identity = identity
        self.detail = message
        context = []
        if operation:
            context.append(f"operation={operation}")
        if identity:
            context.append(f"identity={identity}")
        prefix = f"{self.error_code}: "
        if context:
            prefix += f"[{', '.join(context)}] "
        super().__init__(prefix + message)


class EmptySampleSetError(PerfBaselineError):
    """Raised when a measurement set would be built from zero samples."""

    error_code = "PB_EMPTY_SAMPLE_SET"


class SampleValidationError(PerfBaselineError):
    """Raised when a sample carries a negative or non-finite value."""

    error_code = "PB_INVALID_SAMPLE"


class SampleCollectionError(PerfBaselineError):
    """Raised when a sample source fails or yields the wrong number of samples."""

    error_code = "PB_SAMPLE_COLLECTION"


class InvalidBaselineError(PerfBaselineError):
    """Raised when a baseline cannot be compared against (e.g. zero mean)."""

    error_code = "PB_INVALID_BASELINE"


class MissingBaselineError(PerfBaselineError):
    """Raised when no baseline is stored for a workload identity."""

    error_code = "PB_MISSING_BASELINE"


class IncompatibleSchemaError(PerfBaselineError):
    """Raised when a stored document is unversioned or from an unsupported major version."""

    error_code = "PB_INCOMPATIBLE_SCHEMA"


class CorruptDataError(PerfBaselineError):
    """Raised when a stored document cannot be read or decoded structurally."""

    error_code = "PB_CORRUPT_DATA"


class WriteFailureError(PerfBaselineError):
    """Raised when a baseline save or history append hits an I/O error."""

    error_code = "PB_WRITE_FAILURE"


class ConfigurationError(PerfBaselineError):
    """Raised when configuration or analysis parameters are invalid."""

    error_code = "PB_CONFIGURATION"
