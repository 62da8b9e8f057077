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

"""Rule contract and the base class shipped rules build on.

Any object exposing ``check(path) -> list[Diagnostic]`` together with the
metadata attributes of `Rule` can be run. `BaseRule` supplies sensible
metadata defaults, a descriptor builder and a diagnostic factory.
"""

from __future__ import annotations

import abc
import re
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Final, Protocol, runtime_checkable

from reviewkit.core.model_types import RuleCategory, SeverityLevel
from reviewkit.core.type_aliases import RuleId
from reviewkit.core.types import Diagnostic, RuleDescriptor, normalise_tags

if TYPE_CHECKING:
    from reviewkit.json import JSONValue

DEFAULT_DESCRIPTION: Final[str] = "No description provided for this rule."
RULE_CONTRACT_MEMBERS: Final[tuple[str, ...]] = (
    "check",
    "category",
    "severity",
    "tags",
    "enabled",
    "config_options",
    "description",
)
_CAMEL_BOUNDARY: Final[re.Pattern[str]] = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@runtime_checkable
class Rule(Protocol):
    """Protocol every runnable rule satisfies.

    Attributes:
        category: Functional category of the rule.
        severity: Default severity of the rule's findings.
        tags: Free-form tags used for filtering.
        enabled: Whether the rule runs by default.
        config_options: Declared configuration options and their defaults.
        description: Human-readable description.
    """

    category: RuleCategory
    severity: SeverityLevel
    tags: tuple[str, ...]
    enabled: bool
    config_options: Mapping[str, JSONValue]
    description: str

    def check(self, path: str) -> list[Diagnostic]:
        """Inspect one file and return its findings.

        Args:
            path: Absolute path of the file to inspect.

        Returns:
            Findings for the file; an empty list when the file is clean.
        """
        ...  # pragma: no cover


def rule_display_name(class_name: str) -> str:
    """Derive a human-readable name from a rule class name.

    ``LineLengthRule`` becomes ``Line Length``.
    """
    base = class_name.removesuffix("Rule") or class_name
    return " ".join(_CAMEL_BOUNDARY.split(base)).strip()


def rule_identifier(rule_class: type) -> RuleId:
    return RuleId(rule_class.__name__)


def describe_rule_class(rule_class: type, identifier: str | None = None) -> RuleDescriptor:
    """Build a ``RuleDescriptor`` from the class-level metadata of ``rule_class``.

    Missing attributes fall back to the ``BaseRule`` defaults, so structural
    rules that do not inherit from it can still be described.

    Args:
        rule_class: Rule class to describe.
        identifier: Identifier the rule was configured by; defaults to the class name.

    Returns:
        Immutable metadata for the rule.
    """
    raw_category = getattr(rule_class, "category", RuleCategory.GENERAL)
    category = raw_category if isinstance(raw_category, RuleCategory) else RuleCategory.from_str(str(raw_category))
    raw_severity = getattr(rule_class, "severity", None)
    severity = SeverityLevel.coerce(raw_severity, category.default_severity) if raw_severity else category.default_severity
    description = getattr(rule_class, "description", None)
    options = getattr(rule_class, "config_options", None)
    return RuleDescriptor(
        identifier=RuleId(identifier or rule_class.__name__),
        name=str(getattr(rule_class, "display_name", None) or rule_display_name(rule_class.__name__)),
        category=category,
        severity=severity,
        description=description if isinstance(description, str) and description.strip() else DEFAULT_DESCRIPTION,
        tags=normalise_tags(getattr(rule_class, "tags", ())),
        enabled=bool(getattr(rule_class, "enabled", True)),
        config_options=dict(options) if isinstance(options, Mapping) else {},
        version=str(getattr(rule_class, "version", "1.0.0")),
        author=str(getattr(rule_class, "author", "reviewkit")),
        created=getattr(rule_class, "created", None),
        updated=getattr(rule_class, "updated", None),
        requires_packages=tuple(getattr(rule_class, "requires_packages", ())),
        requires_extensions=tuple(getattr(rule_class, "requires_extensions", ())),
    )


class BaseRule(abc.ABC):
    """Abstract base class for rules.

    Subclasses override the class-level metadata they care about and implement
    `check`. The constructor takes no required arguments so the runner can
    instantiate rules by identifier.
    """

    category: ClassVar[RuleCategory] = RuleCategory.GENERAL
    severity: ClassVar[SeverityLevel] = SeverityLevel.WARNING
    description: ClassVar[str] = DEFAULT_DESCRIPTION
    tags: ClassVar[tuple[str, ...]] = ()
    enabled: ClassVar[bool] = True
    config_options: ClassVar[Mapping[str, JSONValue]] = {}
    version: ClassVar[str] = "1.0.0"
    author: ClassVar[str] = "reviewkit"
    created: ClassVar[str | None] = None
    updated: ClassVar[str | None] = None
    requires_packages: ClassVar[tuple[str, ...]] = ()
    requires_extensions: ClassVar[tuple[str, ...]] = ()

    @abc.abstractmethod
    def check(self, path: str) -> list[Diagnostic]:
        """Inspect one file and return its findings."""

    @property
    def identifier(self) -> RuleId:
        return rule_identifier(type(self))

    @property
    def name(self) -> str:
        return rule_display_name(type(self).__name__)

    def describe(self) -> RuleDescriptor:
        return describe_rule_class(type(self))

    def create_diagnostic(
        self,
        path: str | Path,
        message: str,
        *,
        line: int | None = None,
        bad: str | None = None,
        good: str | None = None,
        severity: SeverityLevel | None = None,
        **extra: JSONValue,
    ) -> Diagnostic:
        """Build a diagnostic carrying this rule's identity and defaults.

        Args:
            path: File the finding refers to.
            message: Description of the finding.
            line: Optional 1-based line number.
            bad: Optional offending code excerpt.
            good: Optional suggested replacement.
            severity: Override for the rule's default severity.
            **extra: Additional JSON-compatible data.

        Returns:
            The diagnostic.
        """
        return Diagnostic(
            message=message,
            path=Path(path),
            line=line,
            bad=bad,
            good=good,
            severity=severity or self.severity,
            category=self.category,
            tags=normalise_tags(self.tags),
            rule=self.identifier,
            extra=dict(extra),
        )


__all__ = [
    "DEFAULT_DESCRIPTION",
    "RULE_CONTRACT_MEMBERS",
    "BaseRule",
    "Rule",
    "describe_rule_class",
    "rule_display_name",
    "rule_identifier",
]
