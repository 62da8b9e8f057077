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

"""Model types and enumerations for reviewkit.

This module defines the enumerations shared by the rule contract, the
validator and the run orchestrator:

- Rule categories and diagnostic severities
- Error categories and log levels for run report entries
- Orchestrator states and failure policies
- Logging formats and components
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class SeverityLevel(StrEnum):
    """Enumeration of diagnostic severity levels.

    Attributes:
        ERROR: Findings that must be fixed.
        WARNING: Potential problems that should be addressed.
        INFO: Informational findings.
        SUGGESTION: Optional improvements.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUGGESTION = "suggestion"

    @classmethod
    def from_str(cls, raw: str) -> SeverityLevel:
        """Create a SeverityLevel enum from a string value.

        Args:
            raw: String representation of the severity level.

        Returns:
            SeverityLevel enum value.

        Raises:
            ValueError: If the string does not match any SeverityLevel value.
        """
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            msg = f"Unknown severity '{raw}'"
            raise ValueError(msg) from exc

    @classmethod
    def coerce(cls, raw: object, default: SeverityLevel | None = None) -> SeverityLevel:
        """Coerce an arbitrary object to a SeverityLevel with fallback.

        Handles plural forms and the ``information`` spelling. Returns
        ``default`` (``WARNING`` when omitted) if coercion fails.

        Args:
            raw: Object to coerce to a SeverityLevel.
            default: Fallback severity.

        Returns:
            SeverityLevel enum value.
        """
        fallback = default or cls.WARNING
        if isinstance(raw, SeverityLevel):
            return raw
        if not isinstance(raw, str):
            return fallback
        input_str = raw.strip().lower()
        if input_str.endswith("s") and input_str[:-1] in cls._value2member_map_:
            input_str = input_str[:-1]
        if input_str == "information":
            input_str = "info"
        try:
            return cls.from_str(input_str)
        except ValueError:
            return fallback


class RuleCategory(StrEnum):
    """Functional area a rule belongs to.

    Each member carries a display name, a description, a default severity and a
    priority (1 is the most important) used for sorting and filtering.
    """

    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    BEST_PRACTICE = "best-practice"
    MAINTAINABILITY = "maintainability"
    COMPATIBILITY = "compatibility"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    ARCHITECTURE = "architecture"
    GENERAL = "general"

    @classmethod
    def from_str(cls, raw: str) -> RuleCategory:
        """Create a RuleCategory from a string, accepting ``_`` or ``-`` separators.

        Args:
            raw: String representation of the category.

        Returns:
            RuleCategory enum value.

        Raises:
            ValueError: If the string does not match any category.
        """
        value = raw.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(value)
        except ValueError as exc:
            msg = f"Unknown rule category '{raw}'"
            raise ValueError(msg) from exc

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _CATEGORY_DESCRIPTIONS[self]

    @property
    def default_severity(self) -> SeverityLevel:
        if self is RuleCategory.SECURITY:
            return SeverityLevel.ERROR
        if self in {RuleCategory.STYLE, RuleCategory.DOCUMENTATION}:
            return SeverityLevel.INFO
        return SeverityLevel.WARNING

    @property
    def priority(self) -> int:
        return _CATEGORY_PRIORITIES[self]


_CATEGORY_DISPLAY_NAMES: Final[dict[RuleCategory, str]] = {
    RuleCategory.SECURITY: "Security",
    RuleCategory.PERFORMANCE: "Performance",
    RuleCategory.STYLE: "Code Style",
    RuleCategory.BEST_PRACTICE: "Best Practices",
    RuleCategory.MAINTAINABILITY: "Maintainability",
    RuleCategory.COMPATIBILITY: "Compatibility",
    RuleCategory.DOCUMENTATION: "Documentation",
    RuleCategory.TESTING: "Testing",
    RuleCategory.ARCHITECTURE: "Architecture",
    RuleCategory.GENERAL: "General",
}

_CATEGORY_DESCRIPTIONS: Final[dict[RuleCategory, str]] = {
    RuleCategory.SECURITY: "Vulnerabilities and unsafe coding patterns",
    RuleCategory.PERFORMANCE: "Slow constructs and wasteful resource usage",
    RuleCategory.STYLE: "Formatting and naming conventions",
    RuleCategory.BEST_PRACTICE: "Established idioms and recommended patterns",
    RuleCategory.MAINTAINABILITY: "Complexity, duplication and readability",
    RuleCategory.COMPATIBILITY: "Interpreter and dependency version compatibility",
    RuleCategory.DOCUMENTATION: "Docstrings, comments and module documentation",
    RuleCategory.TESTING: "Test coverage and test quality",
    RuleCategory.ARCHITECTURE: "Layering, coupling and module boundaries",
    RuleCategory.GENERAL: "Checks that do not fit another category",
}

_CATEGORY_PRIORITIES: Final[dict[RuleCategory, int]] = {
    RuleCategory.SECURITY: 1,
    RuleCategory.PERFORMANCE: 2,
    RuleCategory.BEST_PRACTICE: 3,
    RuleCategory.MAINTAINABILITY: 4,
    RuleCategory.ARCHITECTURE: 5,
    RuleCategory.TESTING: 6,
    RuleCategory.COMPATIBILITY: 7,
    RuleCategory.DOCUMENTATION: 8,
    RuleCategory.STYLE: 9,
    RuleCategory.GENERAL: 10,
}


class LogLevel(StrEnum):
    """Severity of run report log entries and validation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorCategory(StrEnum):
    """Taxonomy of problems recorded in a run report.

    Attributes:
        CONFIGURATION: Structural or scan-path problems; aborts the run.
        RULE_VALIDATION: A configured rule failed contract validation and was dropped.
        FILE_SCANNING: Discovery-time problems such as unreadable subtrees.
        FILE_PROCESSING: Per-file problems during execution.
        RULE_PROCESSING: Per-rule summaries of failed files.
        RULE_ERROR: A rule raised while checking one file.
        VIOLATION_VALIDATION: A returned diagnostic was malformed and dropped.
        PERFORMANCE: Timing notes.
        GENERAL: Progress and bookkeeping notes.
        CRITICAL: Unexpected orchestrator failure; aborts the run.
    """

    CONFIGURATION = "configuration"
    RULE_VALIDATION = "rule_validation"
    FILE_SCANNING = "file_scanning"
    FILE_PROCESSING = "file_processing"
    RULE_PROCESSING = "rule_processing"
    RULE_ERROR = "rule_error"
    VIOLATION_VALIDATION = "violation_validation"
    PERFORMANCE = "performance"
    GENERAL = "general"
    CRITICAL = "critical"

    @property
    def is_fatal(self) -> bool:
        return self in {ErrorCategory.CONFIGURATION, ErrorCategory.CRITICAL}


class RunState(StrEnum):
    """States of the execution orchestrator."""

    IDLE = "idle"
    VALIDATING_CONFIG = "validating_config"
    DISCOVERING = "discovering"
    EXECUTING = "executing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in {RunState.COMPLETED, RunState.ABORTED}


class FailOnPolicy(StrEnum):
    """Policy describing which diagnostics make the CLI exit non-zero."""

    NEVER = "never"
    WARNINGS = "warnings"
    ERRORS = "errors"

    @classmethod
    def from_str(cls, raw: str) -> FailOnPolicy:
        """Create a FailOnPolicy enum from a string value.

        Args:
            raw: String representation of the policy.

        Returns:
            FailOnPolicy enum value.

        Raises:
            ValueError: If the string does not match any policy.
        """
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            msg = f"Unknown fail-on policy '{raw}'"
            raise ValueError(msg) from exc


class LogFormat(StrEnum):
    """Enumeration of log output formats."""

    TEXT = "text"
    JSON = "json"

    @classmethod
    def from_str(cls, raw: str) -> LogFormat:
        """Create a LogFormat enum from a string value.

        Args:
            raw: String representation of the log format.

        Returns:
            LogFormat enum value.

        Raises:
            ValueError: If the string does not match any LogFormat value.
        """
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            msg = f"Unknown log format '{raw}'"
            raise ValueError(msg) from exc


class LogComponent(StrEnum):
    """Logical component attached to structured log records."""

    CLI = "cli"
    CONFIG = "config"
    CACHE = "cache"
    DISCOVERY = "discovery"
    REGISTRY = "registry"
    VALIDATOR = "validator"
    RUNNER = "runner"
    RULE = "rule"
    PARSING = "parsing"
    REPORT = "report"


__all__ = [
    "ErrorCategory",
    "FailOnPolicy",
    "LogComponent",
    "LogFormat",
    "LogLevel",
    "RuleCategory",
    "RunState",
    "SeverityLevel",
]
