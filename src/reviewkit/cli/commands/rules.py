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

"""``reviewkit rules``: list available rules and their metadata."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from reviewkit.cli.helpers import echo, register_argument
from reviewkit.core.model_types import LogFormat, RuleCategory, SeverityLevel
from reviewkit.json import dumps
from reviewkit.rules.filter import RuleFilter, rule_statistics
from reviewkit.rules.registry import describe_rules

if TYPE_CHECKING:
    from reviewkit.cli.helpers import SubparserCollection


def register_rules_command(subparsers: SubparserCollection) -> None:
    """Attach the ``reviewkit rules`` command to the CLI."""
    rules = subparsers.add_parser(
        "rules",
        help="List available rules",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    register_argument(
        rules,
        "--category",
        dest="categories",
        action="append",
        choices=[category.value for category in RuleCategory],
        default=None,
        help="Only list rules in this category (repeatable).",
    )
    register_argument(
        rules,
        "--severity",
        dest="severities",
        action="append",
        choices=[severity.value for severity in SeverityLevel],
        default=None,
        help="Only list rules with this default severity (repeatable).",
    )
    register_argument(
        rules,
        "--tag",
        dest="tags",
        action="append",
        default=None,
        help="Only list rules carrying this tag (repeatable; any tag matches).",
    )
    register_argument(
        rules,
        "--format",
        choices=[fmt.value for fmt in LogFormat],
        default=LogFormat.TEXT.value,
        help="Output format for the rule listing.",
    )


def execute_rules(args: argparse.Namespace) -> int:
    """Execute the rules subcommand."""
    criteria = RuleFilter()
    if args.categories:
        criteria = criteria.by_category(*args.categories)
    if args.severities:
        criteria = criteria.by_severity(*args.severities)
    if args.tags:
        criteria = criteria.by_tags(*args.tags)
    registrations = {item.descriptor.identifier: item for item in describe_rules()}
    selected = criteria.apply(item.descriptor for item in registrations.values())
    if LogFormat.from_str(args.format) is LogFormat.JSON:
        payload = {
            "rules": [
                {**descriptor.to_payload(), "origin": registrations[descriptor.identifier].origin}
                for descriptor in selected
            ],
            "statistics": rule_statistics(selected),
        }
        echo(dumps(payload), newline=False)
        return 0
    if not selected:
        echo("[reviewkit] No rules match the given filters")
        return 0
    for descriptor in selected:
        origin = registrations[descriptor.identifier].origin
        echo(
            f"{descriptor.identifier} ({descriptor.category.value}, {descriptor.severity.value}, {origin}): "
            f"{descriptor.description}",
        )
    return 0


__all__ = ["execute_rules", "register_rules_command"]
