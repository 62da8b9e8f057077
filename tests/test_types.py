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

"""Unit tests for diagnostics, descriptors and the shared enumerations."""

from __future__ import annotations

from pathlib import Path

import pytest

from reviewkit.core.model_types import ErrorCategory, FailOnPolicy, RuleCategory, RunState, SeverityLevel
from reviewkit.core.type_aliases import RuleId
from reviewkit.core.types import Diagnostic, InvalidDiagnosticError, coerce_diagnostic, normalise_tags
from reviewkit.rules.base import DEFAULT_DESCRIPTION, describe_rule_class, rule_display_name
from tests.fixtures.stubs import RecordingRule, StructuralRule, UndocumentedRule

pytestmark = pytest.mark.unit

FILE = Path("/project/src/a.py")


def _coerce(value: object) -> Diagnostic:
    return coerce_diagnostic(
        value,
        rule=RuleId("SampleRule"),
        path=FILE,
        category=RuleCategory.STYLE,
        severity=SeverityLevel.INFO,
    )


def test_coerce_fills_rule_defaults() -> None:
    diagnostic = _coerce(Diagnostic(message="  Too long  ", line=3))
    assert diagnostic.message == "Too long"
    assert diagnostic.path == FILE
    assert diagnostic.rule == "SampleRule"
    assert diagnostic.category is RuleCategory.STYLE
    assert diagnostic.severity is SeverityLevel.INFO


def test_coerce_keeps_explicit_values() -> None:
    diagnostic = _coerce(
        Diagnostic(
            message="Unsafe",
            path=Path("/other.py"),
            severity=SeverityLevel.ERROR,
            category=RuleCategory.SECURITY,
        ),
    )
    assert diagnostic.path == Path("/other.py")
    assert diagnostic.severity is SeverityLevel.ERROR
    assert diagnostic.category is RuleCategory.SECURITY


def test_coerce_normalises_loosely_built_diagnostics() -> None:
    diagnostic = _coerce(Diagnostic(message="Found", path="/project/src/c.py", severity="error"))  # type: ignore[arg-type]
    assert diagnostic.path == Path("/project/src/c.py")
    assert diagnostic.severity is SeverityLevel.ERROR
    assert diagnostic.dedupe_key[1] == "/project/src/c.py"


@pytest.mark.parametrize("message", [None, 42, b"bytes"])
def test_coerce_rejects_non_string_messages(message: object) -> None:
    with pytest.raises(InvalidDiagnosticError):
        _ = _coerce(Diagnostic(message=message))  # type: ignore[arg-type]


def test_coerce_accepts_loose_mappings() -> None:
    diagnostic = _coerce({
        "message": "Found eval",
        "file": "/project/src/b.py",
        "line": "12",
        "severity": "errors",
        "category": "best_practice",
        "tags": ["Security", "security", " eval "],
        "column": 4,
    })
    assert diagnostic.path == Path("/project/src/b.py")
    assert diagnostic.line == 12
    assert diagnostic.severity is SeverityLevel.ERROR
    assert diagnostic.category is RuleCategory.BEST_PRACTICE
    assert diagnostic.tags == ("eval", "security")
    assert diagnostic.extra == {"column": 4}


def test_unknown_mapping_category_falls_back_to_rule_default() -> None:
    diagnostic = _coerce({"message": "x", "category": "nonsense", "line": 0})
    assert diagnostic.category is RuleCategory.STYLE
    assert diagnostic.line is None


@pytest.mark.parametrize("value", [{"message": "   "}, {"line": 1}, Diagnostic(message=""), "text", 42, None])
def test_coerce_rejects_malformed_items(value: object) -> None:
    with pytest.raises(InvalidDiagnosticError) as excinfo:
        _ = _coerce(value)
    assert excinfo.value.payload is value
    assert isinstance(excinfo.value, ValueError)


def test_dedupe_key_ignores_severity_and_tags() -> None:
    first = Diagnostic(message="m", path=FILE, line=2, rule=RuleId("R"), severity=SeverityLevel.ERROR)
    second = Diagnostic(message="m", path=FILE, line=2, rule=RuleId("R"), tags=("x",))
    assert first.dedupe_key == second.dedupe_key
    assert first.dedupe_key != Diagnostic(message="m", path=FILE, line=3, rule=RuleId("R")).dedupe_key


def test_diagnostic_payload_is_json_ready() -> None:
    payload = Diagnostic(
        message="m",
        path=FILE,
        line=2,
        severity=SeverityLevel.WARNING,
        category=RuleCategory.PERFORMANCE,
        tags=("io",),
        rule=RuleId("R"),
        extra={"size": 3},
    ).to_payload()
    assert payload == {
        "message": "m",
        "path": "/project/src/a.py",
        "line": 2,
        "bad": None,
        "good": None,
        "severity": "warning",
        "category": "performance",
        "tags": ["io"],
        "rule": "R",
        "extra": {"size": 3},
    }


def test_describe_rule_class_reads_metadata() -> None:
    descriptor = describe_rule_class(RecordingRule)
    assert descriptor.identifier == "RecordingRule"
    assert descriptor.name == "Recording"
    assert descriptor.category is RuleCategory.MAINTAINABILITY
    assert descriptor.severity is SeverityLevel.WARNING
    assert descriptor.tags == ("stub", "testing")
    assert descriptor.priority == RuleCategory.MAINTAINABILITY.priority


def test_describe_structural_rule_and_defaults() -> None:
    structural = describe_rule_class(StructuralRule, "plugins:StructuralRule")
    assert structural.identifier == "plugins:StructuralRule"
    assert structural.severity is SeverityLevel.INFO
    assert describe_rule_class(UndocumentedRule).description == DEFAULT_DESCRIPTION


@pytest.mark.parametrize(
    ("class_name", "expected"),
    [("LineLengthRule", "Line Length"), ("HTTPTimeoutRule", "HTTP Timeout"), ("Rule", "Rule")],
)
def test_rule_display_name(class_name: str, expected: str) -> None:
    assert rule_display_name(class_name) == expected


def test_normalise_tags_handles_empty_input() -> None:
    assert normalise_tags(None) == ()
    assert normalise_tags(["", "  "]) == ()


def test_severity_coercion() -> None:
    assert SeverityLevel.coerce("Warnings") is SeverityLevel.WARNING
    assert SeverityLevel.coerce("information") is SeverityLevel.INFO
    assert SeverityLevel.coerce("bogus", SeverityLevel.ERROR) is SeverityLevel.ERROR
    with pytest.raises(ValueError, match="Unknown severity"):
        _ = SeverityLevel.from_str("bogus")


def test_category_metadata() -> None:
    assert RuleCategory.from_str("Best Practice") is RuleCategory.BEST_PRACTICE
    assert RuleCategory.SECURITY.default_severity is SeverityLevel.ERROR
    assert RuleCategory.STYLE.default_severity is SeverityLevel.INFO
    assert RuleCategory.SECURITY.priority == 1
    assert RuleCategory.GENERAL.priority == 10
    assert RuleCategory.STYLE.display_name == "Code Style"
    with pytest.raises(ValueError, match="Unknown rule category"):
        _ = RuleCategory.from_str("cosmetics")


def test_state_and_category_flags() -> None:
    assert {state for state in RunState if state.is_terminal} == {RunState.COMPLETED, RunState.ABORTED}
    assert {category for category in ErrorCategory if category.is_fatal} == {
        ErrorCategory.CONFIGURATION,
        ErrorCategory.CRITICAL,
    }
    assert FailOnPolicy.from_str(" Errors ") is FailOnPolicy.ERRORS
