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

"""Formatting rules shipped with reviewkit."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Final

from reviewkit.core.model_types import RuleCategory, SeverityLevel
from reviewkit.rules.base import BaseRule

if TYPE_CHECKING:
    from collections.abc import Mapping

    from reviewkit.core.types import Diagnostic
    from reviewkit.json import JSONValue

DEFAULT_MAX_LINE_LENGTH: Final[int] = 100


class LineLengthRule(BaseRule):
    """Flag lines longer than the configured limit."""

    category: ClassVar[RuleCategory] = RuleCategory.STYLE
    severity: ClassVar[SeverityLevel] = SeverityLevel.INFO
    description: ClassVar[str] = "Lines should not exceed the configured maximum length."
    tags: ClassVar[tuple[str, ...]] = ("formatting", "readability")
    config_options: ClassVar[Mapping[str, JSONValue]] = {"max_line_length": DEFAULT_MAX_LINE_LENGTH}

    def __init__(self, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> None:
        super().__init__()
        self.max_line_length = max_line_length

    def check(self, path: str) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        with open(path, encoding="utf-8", errors="replace") as handle:
            for number, raw_line in enumerate(handle, start=1):
                line = raw_line.rstrip("\r\n")
                if len(line) <= self.max_line_length:
                    continue
                diagnostics.append(
                    self.create_diagnostic(
                        path,
                        f"Line is {len(line)} characters long (limit {self.max_line_length})",
                        line=number,
                        bad=line.strip()[:120],
                        length=len(line),
                    ),
                )
        return diagnostics
