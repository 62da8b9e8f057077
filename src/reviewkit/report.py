# Copyright 2025 CrownOps Engineering
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Run report model and the JSON sink.

A `RunReport` is owned by the runner for the duration of one run and is the
only artifact a run produces: log entries grouped by level, the final
deduplicated diagnostics, per-rule validation results, statistics and
performance metrics.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final, cast

from reviewkit._internal.logging_utils import structured_extra
from reviewkit.core.model_types import ErrorCategory, LogComponent, LogLevel, RunState, SeverityLevel
from reviewkit.json import dumps, normalize_enums_for_json

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from reviewkit.core.types import Diagnostic, ValidationResult
    from reviewkit.json import JSONValue

logger: logging.Logger = logging.getLogger("reviewkit.report")

REPORT_KEYS: Final[tuple[str, ...]] = (
    "summary",
    "performance",
    "statistics",
    "errors",
    "warnings",
    "info",
    "diagnostics",
    "state",
    "validation",
)


def _default_context() -> Mapping[str, JSONValue]:
    return {}


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One error, warning or note recorded during a run.

    Attributes:
        timestamp: Time the entry was recorded (UTC).
        level: Entry level; selects the report list it lands in.
        message: Human-readable description.
        category: Error taxonomy bucket.
        context: Structured details such as rule, path and fault type.
    """

    timestamp: datetime
    level: LogLevel
    message: str
    category: ErrorCategory
    context: Mapping[str, JSONValue] = field(default_factory=_default_context)

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "message": self.message,
            "category": self.category.value,
            "context": dict(self.context),
        }


def _default_rule_times() -> dict[str, float]:
    return {}


def _default_parse_stats() -> dict[str, dict[str, JSONValue]]:
    return {}


def _default_cache_counters() -> dict[str, JSONValue]:
    return {}


@dataclass(slots=True)
class PerformanceMetrics:
    """Timing and cache counters for one run; times are in seconds."""

    total_time: float = 0.0
    file_scanning: float = 0.0
    rules: dict[str, float] = field(default_factory=_default_rule_times)
    cache: dict[str, JSONValue] = field(default_factory=_default_cache_counters)
    parse_cache: dict[str, dict[str, JSONValue]] = field(default_factory=_default_parse_stats)

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "total_time": round(self.total_time, 6),
            "file_scanning": round(self.file_scanning, 6),
            "rules": {name: round(duration, 6) for name, duration in self.rules.items()},
            "cache": dict(self.cache),
            "parse_cache": cast("JSONValue", {name: dict(stats) for name, stats in self.parse_cache.items()}),
        }


def _default_scan_paths() -> list[str]:
    return []


@dataclass(slots=True)
class RunStatistics:
    """Counters describing what a run touched.

    Attributes:
        files_scanned: Files returned by discovery.
        scan_paths: Configured scan roots.
        rules_configured: Rules named in the configuration.
        rules_processed: Rules that passed validation and were executed.
        rules_failed: Rules dropped by validation plus rules that faulted on at least one file.
        total_violations: Diagnostics in the final, deduplicated report.
        violations_dropped: Returned diagnostics rejected as malformed.
        files_skipped: Files skipped because they vanished or became unreadable.
    """

    files_scanned: int = 0
    scan_paths: list[str] = field(default_factory=_default_scan_paths)
    rules_configured: int = 0
    rules_processed: int = 0
    rules_failed: int = 0
    total_violations: int = 0
    violations_dropped: int = 0
    files_skipped: int = 0

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "files_scanned": self.files_scanned,
            "scan_paths": list(self.scan_paths),
            "rules_configured": self.rules_configured,
            "rules_processed": self.rules_processed,
            "rules_failed": self.rules_failed,
            "total_violations": self.total_violations,
            "violations_dropped": self.violations_dropped,
            "files_skipped": self.files_skipped,
        }


def _default_entries() -> list[LogEntry]:
    return []


def _default_diagnostics() -> list[Diagnostic]:
    return []


def _default_validation() -> list[ValidationResult]:
    return []


@dataclass(slots=True)
class RunReport:
    """Aggregated outcome of one run."""

    state: RunState = RunState.IDLE
    errors: list[LogEntry] = field(default_factory=_default_entries)
    warnings: list[LogEntry] = field(default_factory=_default_entries)
    info: list[LogEntry] = field(default_factory=_default_entries)
    diagnostics: list[Diagnostic] = field(default_factory=_default_diagnostics)
    validation: list[ValidationResult] = field(default_factory=_default_validation)
    statistics: RunStatistics = field(default_factory=RunStatistics)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    def record(
        self,
        level: LogLevel,
        message: str,
        category: ErrorCategory,
        context: Mapping[str, object] | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> LogEntry:
        """Append a log entry to the list matching ``level`` and return it."""
        entry = LogEntry(
            timestamp=timestamp or datetime.now(UTC),
            level=level,
            message=message,
            category=category,
            context=cast("Mapping[str, JSONValue]", normalize_enums_for_json(dict(context or {}))),
        )
        match level:
            case LogLevel.ERROR:
                self.errors.append(entry)
            case LogLevel.WARNING:
                self.warnings.append(entry)
            case LogLevel.INFO:
                self.info.append(entry)
        return entry

    def entries(self, category: ErrorCategory | None = None) -> list[LogEntry]:
        """Return every entry (errors, warnings, info), optionally limited to one category."""
        combined = [*self.errors, *self.warnings, *self.info]
        if category is None:
            return combined
        return [entry for entry in combined if entry.category is category]

    def violation_counts(self) -> dict[SeverityLevel, int]:
        counts = Counter(diagnostic.severity or SeverityLevel.WARNING for diagnostic in self.diagnostics)
        return {severity: counts.get(severity, 0) for severity in SeverityLevel}

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_valid(self) -> bool:
        return self.state is not RunState.ABORTED and not self.errors

    def summary(self) -> dict[str, JSONValue]:
        return {
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "info": len(self.info),
            "is_valid": self.is_valid,
            "has_errors": self.has_errors,
            "has_warnings": self.has_warnings,
            "violations": cast("JSONValue", normalize_enums_for_json(self.violation_counts())),
        }

    def to_payload(self) -> dict[str, JSONValue]:
        """Return the JSON-compatible report with exactly the keys in ``REPORT_KEYS``."""
        return {
            "summary": self.summary(),
            "performance": self.performance.to_payload(),
            "statistics": self.statistics.to_payload(),
            "errors": [entry.to_payload() for entry in self.errors],
            "warnings": [entry.to_payload() for entry in self.warnings],
            "info": [entry.to_payload() for entry in self.info],
            "diagnostics": [diagnostic.to_payload() for diagnostic in self.diagnostics],
            "state": self.state.value,
            "validation": [result.to_payload() for result in self.validation],
        }


def write_report(report: RunReport, path: Path) -> Path:
    """Write ``report`` as indented JSON to ``path``, creating parent directories.

    Returns:
        The written path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(report.to_payload()), encoding="utf-8")
    logger.info(
        "Wrote run report to %s",
        path,
        extra=structured_extra(component=LogComponent.REPORT, path=path, state=report.state),
    )
    return path


__all__ = [
    "REPORT_KEYS",
    "LogEntry",
    "PerformanceMetrics",
    "RunReport",
    "RunStatistics",
    "write_report",
]
