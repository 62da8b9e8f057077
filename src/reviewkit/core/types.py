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

"""Core data classes for rule metadata, diagnostics and validation results.

These are the immutable records passed between the rule contract, the
validator and the run orchestrator. Rules produce `Diagnostic` objects (or
plain mappings that `coerce_diagnostic` normalises); the validator produces
`ValidationResult` objects; `RuleDescriptor` carries a rule's metadata.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, cast

from reviewkit._internal.exceptions import ReviewkitValidationError
from reviewkit.json import JSONValue, normalize_enums_for_json

from .model_types import LogLevel, RuleCategory, SeverityLevel
from .type_aliases import IssueCode, RuleId

if TYPE_CHECKING:
    from collections.abc import Iterable


class InvalidDiagnosticError(ReviewkitValidationError):
    """Raised when a rule returns a diagnostic that cannot be accepted."""

    def __init__(self, reason: str, payload: object) -> None:
        self.reason = reason
        self.payload = payload
        super().__init__(reason)


def _default_extra() -> Mapping[str, JSONValue]:
    return {}


def normalise_tags(tags: Iterable[object] | None) -> tuple[str, ...]:
    """Return stripped, lower-cased, deduplicated and sorted tags."""
    if not tags:
        return ()
    cleaned = {str(tag).strip().lower() for tag in tags if str(tag).strip()}
    return tuple(sorted(cleaned))


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Immutable record of one finding reported by a rule for one file.

    Attributes:
        message: Human-readable description of the finding. Required.
        path: File the finding refers to.
        line: Optional 1-based line number.
        bad: Optional excerpt of the offending code.
        good: Optional excerpt showing the suggested fix.
        severity: Severity; the owning rule's severity when omitted.
        category: Category; the owning rule's category when omitted.
        tags: Free-form tags.
        rule: Identifier of the rule that produced the finding.
        extra: Additional JSON-compatible data supplied by the rule.
    """

    message: str
    path: Path | None = None
    line: int | None = None
    bad: str | None = None
    good: str | None = None
    severity: SeverityLevel | None = None
    category: RuleCategory | None = None
    tags: tuple[str, ...] = ()
    rule: RuleId | None = None
    extra: Mapping[str, JSONValue] = field(default_factory=_default_extra)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> Diagnostic:
        """Build a diagnostic from a loosely typed mapping.

        Unknown keys are kept in ``extra``. Invalid severities and categories
        are left unset so the owning rule's defaults apply.

        Args:
            payload: Mapping returned by a rule.

        Returns:
            Diagnostic built from the mapping (``message`` may be empty).
        """
        known = {"message", "path", "file", "line", "bad", "good", "severity", "category", "tags", "rule"}
        raw_path = payload.get("path", payload.get("file"))
        raw_line = payload.get("line")
        raw_tags = payload.get("tags")
        raw_category = payload.get("category")
        category: RuleCategory | None = None
        if isinstance(raw_category, RuleCategory):
            category = raw_category
        elif isinstance(raw_category, str) and raw_category.strip():
            try:
                category = RuleCategory.from_str(raw_category)
            except ValueError:
                category = None
        raw_severity = payload.get("severity")
        severity = SeverityLevel.coerce(raw_severity) if raw_severity is not None else None
        extra = {str(key): value for key, value in payload.items() if key not in known}
        raw_rule = payload.get("rule")
        return cls(
            message=str(payload.get("message") or "").strip(),
            path=Path(str(raw_path)) if raw_path else None,
            line=_coerce_line(raw_line),
            bad=_optional_text(payload.get("bad")),
            good=_optional_text(payload.get("good")),
            severity=severity,
            category=category,
            tags=normalise_tags(cast("Iterable[object]", raw_tags) if isinstance(raw_tags, list | tuple | set) else None),
            rule=RuleId(str(raw_rule)) if raw_rule else None,
            extra=cast("Mapping[str, JSONValue]", normalize_enums_for_json(extra)),
        )

    @property
    def dedupe_key(self) -> tuple[str, str, int, str, str]:
        """Identity used to drop repeated findings from a report."""
        return (
            self.rule or "",
            self.path.as_posix() if self.path else "",
            self.line or 0,
            self.message,
            self.bad or "",
        )

    def to_payload(self) -> dict[str, JSONValue]:
        """Return a JSON-compatible representation of this diagnostic."""
        payload: dict[str, object] = {
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "bad": self.bad,
            "good": self.good,
            "severity": self.severity,
            "category": self.category,
            "tags": list(self.tags),
            "rule": self.rule,
        }
        if self.extra:
            payload["extra"] = dict(self.extra)
        return cast("dict[str, JSONValue]", normalize_enums_for_json(payload))


def _coerce_line(value: object) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _diagnostic_fields(diagnostic: Diagnostic) -> dict[str, object]:
    # Rules may build a Diagnostic with loosely typed fields (a str path, a
    # string severity); re-reading it as a payload normalises them.
    extra = diagnostic.extra if isinstance(diagnostic.extra, Mapping) else {}
    return {
        **extra,
        "message": diagnostic.message,
        "path": diagnostic.path,
        "line": diagnostic.line,
        "bad": diagnostic.bad,
        "good": diagnostic.good,
        "severity": diagnostic.severity,
        "category": diagnostic.category,
        "tags": list(diagnostic.tags) if isinstance(diagnostic.tags, list | tuple | set) else None,
        "rule": diagnostic.rule,
    }


def coerce_diagnostic(
    value: object,
    *,
    rule: RuleId,
    path: Path,
    category: RuleCategory,
    severity: SeverityLevel,
) -> Diagnostic:
    """Validate a rule's return item and fill in the owning rule's defaults.

    Args:
        value: Item returned by ``Rule.check``.
        rule: Identifier of the rule that returned the item.
        path: File the rule was checking.
        category: Rule category used when the item has none.
        severity: Rule severity used when the item has none.

    Returns:
        A complete ``Diagnostic``.

    Raises:
        InvalidDiagnosticError: If the item is not a diagnostic or mapping, or
            its message is empty.
    """
    if isinstance(value, Diagnostic):
        if not isinstance(value.message, str):
            reason = f"Diagnostic message must be a string, got {type(value.message).__name__}"
            raise InvalidDiagnosticError(reason, value)
        diagnostic = Diagnostic.from_payload(_diagnostic_fields(value))
    elif isinstance(value, Mapping):
        diagnostic = Diagnostic.from_payload(cast("Mapping[str, object]", value))
    else:
        reason = f"Unsupported diagnostic type {type(value).__name__}"
        raise InvalidDiagnosticError(reason, value)
    if not diagnostic.message.strip():
        reason = "Diagnostic is missing a message"
        raise InvalidDiagnosticError(reason, value)
    return replace(
        diagnostic,
        message=diagnostic.message.strip(),
        path=diagnostic.path or path,
        rule=diagnostic.rule or rule,
        category=diagnostic.category or category,
        severity=diagnostic.severity or severity,
    )


def _default_config_options() -> Mapping[str, JSONValue]:
    return {}


@dataclass(slots=True, frozen=True)
class RuleDescriptor:
    """Identity and metadata for a configured rule.

    Attributes:
        identifier: Stable identifier the rule is configured by.
        name: Human-readable name.
        category: Functional category.
        severity: Default severity of the rule's findings.
        description: One-paragraph description.
        tags: Sorted, deduplicated tags.
        enabled: Whether the rule runs by default.
        config_options: Declared configuration options and their defaults.
        version: Rule version string.
        author: Rule author.
        created: Optional ISO creation date.
        updated: Optional ISO last-update date.
        requires_packages: Importable packages the rule needs.
        requires_extensions: Extension modules the rule needs.
    """

    identifier: RuleId
    name: str
    category: RuleCategory
    severity: SeverityLevel
    description: str
    tags: tuple[str, ...] = ()
    enabled: bool = True
    config_options: Mapping[str, JSONValue] = field(default_factory=_default_config_options)
    version: str = "1.0.0"
    author: str = "reviewkit"
    created: str | None = None
    updated: str | None = None
    requires_packages: tuple[str, ...] = ()
    requires_extensions: tuple[str, ...] = ()

    @property
    def priority(self) -> int:
        return self.category.priority

    def to_payload(self) -> dict[str, JSONValue]:
        """Return a JSON-compatible representation of this descriptor."""
        payload: dict[str, object] = {
            "identifier": self.identifier,
            "name": self.name,
            "category": self.category,
            "severity": self.severity,
            "description": self.description,
            "tags": list(self.tags),
            "enabled": self.enabled,
            "config_options": dict(self.config_options),
            "version": self.version,
            "author": self.author,
            "created": self.created,
            "updated": self.updated,
            "requires_packages": list(self.requires_packages),
            "requires_extensions": list(self.requires_extensions),
        }
        return cast("dict[str, JSONValue]", normalize_enums_for_json(payload))


@dataclass(slots=True, frozen=True)
class ValidationIssue:
    """One error, warning or note produced while validating a rule or configuration."""

    type: IssueCode
    message: str
    suggestion: str = ""
    severity: LogLevel = LogLevel.ERROR

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "type": self.type,
            "message": self.message,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
        }


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of validating one configured rule identifier.

    Attributes:
        identifier: Rule identifier that was validated.
        errors: Ordered errors; any error makes the rule invalid.
        warnings: Ordered non-fatal warnings.
        info: Ordered informational notes.
        descriptor: Metadata of the resolved rule, when it could be described.
        rule_class: Resolved rule class, when resolution succeeded.
    """

    identifier: str
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    info: tuple[ValidationIssue, ...] = ()
    descriptor: RuleDescriptor | None = None
    rule_class: type | None = field(default=None, compare=False, repr=False)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_types(self) -> list[str]:
        return [issue.type for issue in self.errors]

    def warning_types(self) -> list[str]:
        return [issue.type for issue in self.warnings]

    def to_payload(self) -> dict[str, JSONValue]:
        """Return a JSON-compatible representation of this result."""
        return {
            "identifier": self.identifier,
            "is_valid": self.is_valid,
            "errors": [issue.to_payload() for issue in self.errors],
            "warnings": [issue.to_payload() for issue in self.warnings],
            "info": [issue.to_payload() for issue in self.info],
            "descriptor": self.descriptor.to_payload() if self.descriptor else None,
        }


__all__ = [
    "Diagnostic",
    "InvalidDiagnosticError",
    "RuleDescriptor",
    "ValidationIssue",
    "ValidationResult",
    "coerce_diagnostic",
    "normalise_tags",
]
