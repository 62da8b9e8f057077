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

"""Best-practice rules shipped with reviewkit."""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, ClassVar

from reviewkit.core.model_types import RuleCategory, SeverityLevel
from reviewkit.parsing import ParseCache, python_ast_cache
from reviewkit.rules.base import BaseRule

if TYPE_CHECKING:
    from reviewkit.core.types import Diagnostic


class BareExceptRule(BaseRule):
    """Flag ``except:`` clauses that catch every exception, including ``KeyboardInterrupt``.

    Parsed modules are shared through a `ParseCache`, so running the rule twice
    over an unchanged file parses it once.
    """

    category: ClassVar[RuleCategory] = RuleCategory.BEST_PRACTICE
    severity: ClassVar[SeverityLevel] = SeverityLevel.WARNING
    description: ClassVar[str] = "Exception handlers should name the exceptions they expect."
    tags: ClassVar[tuple[str, ...]] = ("exceptions", "error-handling")

    def __init__(self, parse_cache: ParseCache[ast.Module] | None = None) -> None:
        super().__init__()
        self.parse_cache = parse_cache if parse_cache is not None else python_ast_cache()

    def check(self, path: str) -> list[Diagnostic]:
        try:
            module = self.parse_cache.get_or_parse(path)
        except SyntaxError as exc:
            return [
                self.create_diagnostic(
                    path,
                    f"File could not be parsed: {exc.msg}",
                    line=exc.lineno,
                    severity=SeverityLevel.ERROR,
                ),
            ]
        handlers = sorted(
            (node for node in ast.walk(module) if isinstance(node, ast.ExceptHandler) and node.type is None),
            key=lambda node: node.lineno,
        )
        return [
            self.create_diagnostic(
                path,
                "Bare 'except:' catches SystemExit and KeyboardInterrupt",
                line=handler.lineno,
                bad="except:",
                good="except Exception:",
            )
            for handler in handlers
        ]
