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

"""Public exception hierarchy for reviewkit."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reviewkit._internal.exceptions import ReviewkitError, ReviewkitTypeError, ReviewkitValidationError
from reviewkit.config.models import (
    ConfigFieldChoiceError,
    ConfigReadError,
    ConfigValidationError,
    InvalidConfigFileError,
    UnsupportedConfigVersionError,
)
from reviewkit.core.types import InvalidDiagnosticError
from reviewkit.rules.registry import RuleInstantiationError, RuleNotFoundError

if TYPE_CHECKING:
    from reviewkit.report import RunReport


class RunAbortedError(ReviewkitError):
    """Raised when a run stops before completion; ``report`` holds what was recorded."""

    def __init__(self, report: RunReport, message: str = "Run aborted: the configuration is invalid") -> None:
        self.report = report
        super().__init__(message)


class CriticalRunError(RunAbortedError):
    """Raised when the runner itself fails unexpectedly; ``report`` is the partial report."""


__all__ = [
    "ConfigFieldChoiceError",
    "ConfigReadError",
    "ConfigValidationError",
    "CriticalRunError",
    "InvalidConfigFileError",
    "InvalidDiagnosticError",
    "ReviewkitError",
    "ReviewkitTypeError",
    "ReviewkitValidationError",
    "RuleInstantiationError",
    "RuleNotFoundError",
    "RunAbortedError",
    "UnsupportedConfigVersionError",
]
