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

"""Unit tests for the run report model and JSON sink."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from reviewkit.core.model_types import ErrorCategory, LogLevel, RunState, SeverityLevel
from reviewkit.core.types import Diagnostic
from reviewkit.report import REPORT_KEYS, RunReport, write_report

pytestmark = pytest.mark.unit


def _diagnostic(message: str, severity: SeverityLevel | None) -> Diagnostic:
    return Diagnostic(message=message, path=Path("/tmp/a.py"), line=1, severity=severity)


def test_record_routes_entries_by_level() -> None:
    report = RunReport()
    stamp = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)
    error = report.record(
        LogLevel.ERROR,
        "Rule failed",
        ErrorCategory.RULE_ERROR,
        {"rule": "LineLengthRule", "path": Path("/tmp/a.py"), "severity": SeverityLevel.ERROR},
        timestamp=stamp,
    )
    _ = report.record(LogLevel.WARNING, "Skipped", ErrorCategory.FILE_PROCESSING)
    _ = report.record(LogLevel.INFO, "Done", ErrorCategory.GENERAL)

    assert report.errors == [error]
    assert len(report.warnings) == 1
    assert len(report.info) == 1
    assert error.context == {"rule": "LineLengthRule", "path": "/tmp/a.py", "severity": "error"}
    assert error.to_payload()["timestamp"] == "2025-01-02T03:04:05+00:00"
    assert report.has_errors
    assert report.has_warnings
    assert not report.is_valid


def test_entries_filter_by_category() -> None:
    report = RunReport()
    _ = report.record(LogLevel.WARNING, "one", ErrorCategory.FILE_SCANNING)
    _ = report.record(LogLevel.ERROR, "two", ErrorCategory.RULE_ERROR)
    _ = report.record(LogLevel.INFO, "three", ErrorCategory.FILE_SCANNING)

    assert [entry.message for entry in report.entries()] == ["two", "one", "three"]
    assert [entry.message for entry in report.entries(ErrorCategory.FILE_SCANNING)] == ["one", "three"]


def test_violation_counts_cover_every_severity() -> None:
    report = RunReport()
    report.diagnostics.extend([
        _diagnostic("a", SeverityLevel.ERROR),
        _diagnostic("b", SeverityLevel.ERROR),
        _diagnostic("c", None),
    ])
    counts = report.violation_counts()
    assert counts == {
        SeverityLevel.ERROR: 2,
        SeverityLevel.WARNING: 1,
        SeverityLevel.INFO: 0,
        SeverityLevel.SUGGESTION: 0,
    }
    assert report.summary()["violations"] == {"error": 2, "warning": 1, "info": 0, "suggestion": 0}


def test_aborted_report_is_invalid_without_errors() -> None:
    report = RunReport(state=RunState.ABORTED)
    assert not report.has_errors
    assert report.is_valid is False
    assert RunReport(state=RunState.COMPLETED).is_valid is True


def test_payload_has_exactly_the_report_keys() -> None:
    report = RunReport(state=RunState.COMPLETED)
    report.diagnostics.append(_diagnostic("a", SeverityLevel.INFO))
    report.performance.rules["LineLengthRule"] = 0.1234567
    payload = report.to_payload()

    assert tuple(payload) == REPORT_KEYS
    assert payload["state"] == "completed"
    performance = payload["performance"]
    assert isinstance(performance, dict)
    assert performance["rules"] == {"LineLengthRule": 0.123457}


def test_write_report_creates_parent_directories(tmp_path: Path) -> None:
    report = RunReport(state=RunState.COMPLETED)
    _ = report.record(LogLevel.INFO, "Done", ErrorCategory.GENERAL)
    target = tmp_path / "nested" / "report.json"

    assert write_report(report, target) == target
    data = json.loads(target.read_text(encoding="utf-8"))
    assert set(data) == set(REPORT_KEYS)
    assert data["summary"]["info"] == 1
    assert data["info"][0]["category"] == "general"
