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

"""reviewkit: a pluggable static-analysis runner for Python source trees."""

from __future__ import annotations

from reviewkit._internal.exceptions import (
    ReviewkitError,
    ReviewkitTypeError,
    ReviewkitValidationError,
)

from .api import run_review, validate_rules
from .config import RunConfig, config_from_mapping, load_config
from .core.model_types import ErrorCategory, RuleCategory, RunState, SeverityLevel
from .core.types import Diagnostic, RuleDescriptor, ValidationIssue, ValidationResult
from .exceptions import CriticalRunError, RunAbortedError
from .report import LogEntry, RunReport, write_report
from .rules import BaseRule, Rule, RuleValidator
from .runner import RuleRunner, execute_rule_on_file

__all__ = [
    "__version__",
    "BaseRule",
    "CriticalRunError",
    "Diagnostic",
    "ErrorCategory",
    "LogEntry",
    "ReviewkitError",
    "ReviewkitTypeError",
    "ReviewkitValidationError",
    "Rule",
    "RuleCategory",
    "RuleDescriptor",
    "RuleRunner",
    "RuleValidator",
    "RunAbortedError",
    "RunConfig",
    "RunReport",
    "RunState",
    "SeverityLevel",
    "ValidationIssue",
    "ValidationResult",
    "config_from_mapping",
    "execute_rule_on_file",
    "load_config",
    "run_review",
    "validate_rules",
    "write_report",
]

__version__ = "0.1.0"
