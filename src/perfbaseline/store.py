"""Durable baseline storage and append-only test-result history."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .errors import (
    CorruptDataError,
    IncompatibleSchemaError,
    MissingBaselineError,
    WriteFailureError,
)
from .measurement import MeasurementSet
from .stats import SummaryStatistics
from .types import TestResult
from .workload import WorkloadIdentity

logger = logging.getLogger(__name__)

BASELINE_SCHEMA = "perfbaseline.measurement_set"
TEST_RESULT_SCHEMA = "perfbaseline.test_result"
SCHEMA_MAJOR = 1
SCHEMA_MINOR = 0
SCHEMA_VERSION = f"{SCHEMA_MAJOR}.{SCHEMA_MINOR}"

BASELINES_DIRNAME = "baselines"
RESULTS_DIRNAME = "results"


def _parse_schema_version(value: Any) -> tuple[int, int]:
    if not isinstance(value, str):
        raise ValueError(f"schema_version must be a string, got {value!r}")
    major, _, minor = value.partition(".")
    return int(major), int(minor or 0)


def check_schema(payload: dict[str, Any], *, expected: str, identity: str, operation: str) -> None:
    """Reject documents that are unversioned, of another kind, or of another major version.

    Newer minor versions are accepted: additive fields are ignored by readers.
    """
    schema = payload.get("schema")
    if schema != expected:
        raise IncompatibleSchemaError(
            f"expected schema {expected!r}, found {schema!r}",
            operation=operation,
            identity=identity,
        )
    raw_version = payload.get("schema_version")
    try:
        major, _minor = _parse_schema_version(raw_version)
    except ValueError:
        raise IncompatibleSchemaError(
            f"missing or unrecognized schema_version {raw_version!r}",
            operation=operation,
            identity=identity,
        ) from None
    if major != SCHEMA_MAJOR:
        raise IncompatibleSchemaError(
            f"schema_version {raw_version} is not readable by this release "
            f"(supports {SCHEMA_MAJOR}.x)",
            operation=operation,
            identity=identity,
        )


def _verify_statistics(
    measurement_set: MeasurementSet, stored: Any, *, identity: str
) -> None:
    """Stored statistics must agree with the ones recomputed from the stored samples."""
    if stored is None:
        return
    if not isinstance(stored, dict):
        raise CorruptDataError("statistics must be an object", operation="load", identity=identity)
    try:
        timing = SummaryStatistics.from_dict(stored["timing"])
        metrics = {
            str(name): SummaryStatistics.from_dict(value)
            for name, value in (stored.get("metrics") or {}).items()
        }
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CorruptDataError(
            f"malformed statistics block: {exc!r}", operation="load", identity=identity
        ) from exc

    if not timing.matches(measurement_set.timing):
        raise CorruptDataError(
            "stored timing statistics do not match the stored samples",
            operation="load",
            identity=identity,
        )
    if set(metrics) != set(measurement_set.metric_statistics) or not all(
        metrics[name].matches(measurement_set.metric_statistics[name]) for name in metrics
    ):
        raise CorruptDataError(
            "stored metric statistics do not match the stored samples",
            operation="load",
            identity=identity,
        )


class BaselineStore:
    """
    One active baseline per workload identity, plus a JSONL history per identity.

    Layout under ``root``::

        baselines/<identity-key>.json
        results/<identity-key>.jsonl
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @property
    def baselines_dir(self) -> Path:
        return self.root / BASELINES_DIRNAME

    @property
    def results_dir(self) -> Path:
        return self.root / RESULTS_DIRNAME

    def baseline_path(self, identity: WorkloadIdentity) -> Path:
        return self.baselines_dir / f"{identity.key}.json"

    def history_path(self, identity: WorkloadIdentity) -> Path:
        return self.results_dir / f"{identity.key}.jsonl"

    def exists(self, identity: WorkloadIdentity) -> bool:
        return self.baseline_path(identity).is_file()

    def list_identities(self) -> list[str]:
        """Return the identity keys that currently have a stored baseline."""
        if not self.baselines_dir.is_dir():
            return []
        return sorted(path.stem for path in self.baselines_dir.glob("*.json") if path.is_file())

    def save(self, measurement_set: MeasurementSet) -> Path:
        """Atomically replace the baseline for ``measurement_set.identity``.

        The document is written to a temp file in the target directory and
        renamed over the old baseline, so a failure at any point leaves the
        previous baseline readable.
        """
        identity = measurement_set.identity
        path = self.baseline_path(identity)
        payload = {
            "schema": BASELINE_SCHEMA,
            "schema_version": SCHEMA_VERSION,
            "identity": identity.key,
            **measurement_set.to_dict(),
        }
        text = json.dumps(payload, indent=2, sort_keys=True) + "\n"

        temp_path: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".json.tmp", dir=path.parent, prefix=f".{identity.key}."
            )
            with os.fdopen(temp_fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, path)
            temp_path = None
        except OSError as exc:
            raise WriteFailureError(
                f"could not write baseline to {path}: {exc}",
                operation="save",
                identity=identity.key,
            ) from exc
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        logger.info("Saved baseline %s (%d samples) to %s", identity.key, measurement_set.count, path)
        return path

    def load(self, identity: WorkloadIdentity) -> MeasurementSet:
        """Load and validate the stored baseline for ``identity``."""
        key = identity.key
        path = self.baseline_path(identity)
        if not path.is_file():
            raise MissingBaselineError(
                f"no baseline stored for {identity} at {path}. "
                "Run `perfbaseline update` for this workload and device first.",
                operation="load",
                identity=key,
            )

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CorruptDataError(
                f"unreadable baseline file {path}: {exc}", operation="load", identity=key
            ) from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptDataError(
                f"baseline file {path} is not valid JSON: {exc}", operation="load", identity=key
            ) from exc
        if not isinstance(payload, dict):
            raise CorruptDataError(
                f"baseline payload must be an object: {path}", operation="load", identity=key
            )

        check_schema(payload, expected=BASELINE_SCHEMA, identity=key, operation="load")

        try:
            measurement_set = MeasurementSet.from_dict(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CorruptDataError(
                f"baseline file {path} is structurally invalid: {exc!r}",
                operation="load",
                identity=key,
            ) from exc
        except RuntimeError as exc:
            # Domain errors (empty samples, invalid values) surface as corruption here.
            raise CorruptDataError(
                f"baseline file {path} holds invalid measurements: {exc}",
                operation="load",
                identity=key,
            ) from exc

        if measurement_set.identity != identity:
            raise CorruptDataError(
                f"baseline file {path} belongs to {measurement_set.identity}, not {identity}",
                operation="load",
                identity=key,
            )
        _verify_statistics(measurement_set, payload.get("statistics"), identity=key)
        return measurement_set

    def append_test_result(self, test_result: TestResult) -> Path:
        """Append one test result as a JSON line; prior entries are never rewritten."""
        identity = test_result.current.identity
        path = self.history_path(identity)
        record = {
            "schema": TEST_RESULT_SCHEMA,
            "schema_version": SCHEMA_VERSION,
            **test_result.to_dict(),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, separators=(",", ":"), sort_keys=True) + "\n")
        except OSError as exc:
            raise WriteFailureError(
                f"could not append test result to {path}: {exc}",
                operation="append_test_result",
                identity=identity.key,
            ) from exc

        logger.info("Appended %s test result for %s to %s", test_result.verdict.status.value, identity.key, path)
        return path

    def read_history(self, identity: WorkloadIdentity, *, limit: int | None = None) -> list[TestResult]:
        """Read recorded test results, oldest first; ``limit`` keeps the newest entries."""
        key = identity.key
        path = self.history_path(identity)
        if not path.exists():
            return []

        results: list[TestResult] = []
        try:
            with path.open("r", encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        payload = json.loads(line)
                    except json.JSONDecodeError as exc:
                        raise CorruptDataError(
                            f"{path}:{line_number} is not valid JSON: {exc}",
                            operation="read_history",
                            identity=key,
                        ) from exc
                    if not isinstance(payload, dict):
                        raise CorruptDataError(
                            f"{path}:{line_number} must be an object",
                            operation="read_history",
                            identity=key,
                        )
                    check_schema(
                        payload, expected=TEST_RESULT_SCHEMA, identity=key, operation="read_history"
                    )
                    try:
                        results.append(TestResult.from_dict(payload))
                    except (KeyError, TypeError, ValueError, AttributeError) as exc:
                        raise CorruptDataError(
                            f"{path}:{line_number} is structurally invalid: {exc!r}",
                            operation="read_history",
                            identity=key,
                        ) from exc
        except OSError as exc:
            raise CorruptDataError(
                f"unreadable history file {path}: {exc}", operation="read_history", identity=key
            ) from exc

        if limit is not None:
            results = results[-limit:] if limit > 0 else []
        return results
