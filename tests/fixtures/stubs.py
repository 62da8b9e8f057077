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

"""Stub rules exercising each branch of the rule contract."""

from __future__ import annotations

import abc
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from reviewkit.core.model_types import RuleCategory, SeverityLevel
from reviewkit.core.types import Diagnostic
from reviewkit.rules.base import BaseRule

if TYPE_CHECKING:
    from collections.abc import Mapping

    from reviewkit.json import JSONValue

__all__ = [
    "AbstractStubRule",
    "BadAnnotationRule",
    "BadSignatureRule",
    "ConstructorParamRule",
    "EmptyMessageRule",
    "FailingOnFileRule",
    "MappingRule",
    "MissingPackageRule",
    "NoCheckRule",
    "NoneMessageRule",
    "NotARule",
    "OddParameterNameRule",
    "ReadsWholeFileRule",
    "RecordingRule",
    "StaticCheckRule",
    "StringPathRule",
    "StructuralRule",
    "UndocumentedRule",
]

FAILING_FILE_NAME = "broken.py"


class RecordingRule(BaseRule):
    """Report one finding per file and remember every path it saw."""

    category: ClassVar[RuleCategory] = RuleCategory.MAINTAINABILITY
    description: ClassVar[str] = "Reports every file it is given."
    tags: ClassVar[tuple[str, ...]] = ("Testing", "stub")

    def __init__(self) -> None:
        super().__init__()
        self.seen: list[str] = []

    def check(self, path: str) -> list[Diagnostic]:
        self.seen.append(path)
        return [self.create_diagnostic(path, "File seen", line=1)]


class FailingOnFileRule(BaseRule):
    """Raise on files named ``broken.py`` and report every other file."""

    description: ClassVar[str] = "Fails on one specific file."

    def check(self, path: str) -> list[Diagnostic]:
        if Path(path).name == FAILING_FILE_NAME:
            message = f"cannot analyse {path}"
            raise RuntimeError(message)
        return [self.create_diagnostic(path, "Checked", line=1)]


class EmptyMessageRule(BaseRule):
    """Return one malformed diagnostic and one valid mapping diagnostic per file."""

    description: ClassVar[str] = "Returns a diagnostic without a message."

    def check(self, path: str) -> list[Diagnostic]:
        return [{"message": "   ", "line": 1}, {"message": "Kept", "line": 2}]  # type: ignore[list-item]


class NoneMessageRule(BaseRule):
    """Build a `Diagnostic` directly with no message."""

    description: ClassVar[str] = "Returns a diagnostic whose message is None."

    def check(self, path: str) -> list[Diagnostic]:
        return [Diagnostic(message=None, line=1)]  # type: ignore[arg-type]


class StringPathRule(BaseRule):
    """Build a `Diagnostic` directly, passing the checked path through as a string."""

    description: ClassVar[str] = "Reports the raw path it was given."

    def check(self, path: str) -> list[Diagnostic]:
        return [Diagnostic(message="Found", path=path, line=1, severity="error")]  # type: ignore[arg-type]


class MappingRule(BaseRule):
    """Return plain mapping diagnostics that rely on the rule defaults."""

    category: ClassVar[RuleCategory] = RuleCategory.SECURITY
    severity: ClassVar[SeverityLevel] = SeverityLevel.ERROR
    description: ClassVar[str] = "Returns mapping diagnostics."

    def check(self, path: str) -> list[Diagnostic]:
        return [
            {"message": "Duplicate", "line": 3, "bad": "eval(x)"},
            {"message": "Duplicate", "line": 3, "bad": "eval(x)"},
        ]  # type: ignore[list-item]


class ConstructorParamRule(BaseRule):
    """Needs a threshold at construction time."""

    description: ClassVar[str] = "Cannot be built without arguments."

    def __init__(self, threshold: int) -> None:
        super().__init__()
        self.threshold = threshold

    def check(self, path: str) -> list[Diagnostic]:
        return []


class AbstractStubRule(BaseRule):
    """Leaves ``check`` abstract."""

    description: ClassVar[str] = "Abstract."

    @abc.abstractmethod
    def extra(self) -> None:
        """Abstract hook."""


class NoCheckRule:
    """Carries rule metadata but no ``check`` method."""

    category = RuleCategory.GENERAL
    severity = SeverityLevel.WARNING
    tags: tuple[str, ...] = ()
    enabled = True
    config_options: Mapping[str, JSONValue] = {}
    description = "Has no check method."


class NotARule:
    """Has nothing in common with a rule."""


class StaticCheckRule(BaseRule):
    """Declares ``check`` as a static method."""

    description: ClassVar[str] = "Static check."

    @staticmethod
    def check(path: str) -> list[Diagnostic]:  # type: ignore[override]
        return []


class BadSignatureRule(BaseRule):
    """Requires two arguments in ``check``."""

    description: ClassVar[str] = "Two-argument check."

    def check(self, path: str, mode: str) -> list[Diagnostic]:  # type: ignore[override]
        return []


class BadAnnotationRule(BaseRule):
    """Annotates ``check`` with the wrong parameter and return types."""

    description: ClassVar[str] = "Wrong annotations."

    def check(self, path: int) -> dict[str, int]:  # type: ignore[override]
        return {}


class OddParameterNameRule(BaseRule):
    """Names the ``check`` parameter unusually."""

    description: ClassVar[str] = "Unusual parameter name."

    def check(self, source_file: str) -> list[Diagnostic]:  # type: ignore[override]
        return []


class MissingPackageRule(BaseRule):
    """Depends on a package that is never installed."""

    description: ClassVar[str] = "Needs a missing package."
    requires_packages: ClassVar[tuple[str, ...]] = ("reviewkit_absent_dependency",)

    def check(self, path: str) -> list[Diagnostic]:
        return []


class ReadsWholeFileRule(BaseRule):
    """Reads every file into memory at once."""

    description: ClassVar[str] = "Reads whole files."

    def check(self, path: str) -> list[Diagnostic]:
        text = Path(path).read_text(encoding="utf-8")
        return [] if text else [self.create_diagnostic(path, "Empty file")]


class UndocumentedRule(BaseRule):
    def check(self, path: str) -> list[Diagnostic]:
        return []


class StructuralRule:
    """Satisfies the rule contract without inheriting from ``BaseRule``."""

    category = RuleCategory.DOCUMENTATION
    severity = SeverityLevel.INFO
    tags: tuple[str, ...] = ("structural",)
    enabled = True
    config_options: Mapping[str, JSONValue] = {}
    description = "Structural implementation of the rule contract."

    def check(self, path: str) -> list[Diagnostic]:
        return []
