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

"""Rule contract, registry, validation and filtering."""

from __future__ import annotations

from .base import DEFAULT_DESCRIPTION, BaseRule, Rule, describe_rule_class
from .builtin import BareExceptRule, LineLengthRule
from .filter import RuleFilter, rule_statistics
from .registry import (
    ENTRY_POINT_GROUP,
    RuleInstantiationError,
    RuleNotFoundError,
    RuleRegistration,
    builtin_rules,
    describe_rules,
    entrypoint_rules,
    instantiate_rule,
    resolve_rule_class,
    rule_map,
)
from .validator import ConfigurationReport, RuleValidator

__all__ = [
    "DEFAULT_DESCRIPTION",
    "ENTRY_POINT_GROUP",
    "BareExceptRule",
    "BaseRule",
    "ConfigurationReport",
    "LineLengthRule",
    "Rule",
    "RuleFilter",
    "RuleInstantiationError",
    "RuleNotFoundError",
    "RuleRegistration",
    "RuleValidator",
    "builtin_rules",
    "describe_rule_class",
    "describe_rules",
    "entrypoint_rules",
    "instantiate_rule",
    "resolve_rule_class",
    "rule_map",
    "rule_statistics",
]
