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

"""``reviewkit validate``: check the configuration and every configured rule."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit.api import validate_rules
from reviewkit.cli.helpers import echo, register_argument
from reviewkit.config import ConfigValidationError
from reviewkit.core.model_types import LogFormat
from reviewkit.json import dumps

if TYPE_CHECKING:
    from reviewkit.cli.helpers import SubparserCollection
    from reviewkit.rules.validator import ConfigurationReport


def register_validate_command(subparsers: SubparserCollection) -> None:
    """Attach the ``reviewkit validate`` command to the CLI."""
    validate = subparsers.add_parser(
        "validate",
        help="Validate the configuration and the configured rules",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    register_argument(validate, "--config", type=Path, default=None, help="Explicit configuration file.")
    register_argument(
        validate,
        "--project-root",
        type=Path,
        default=None,
        help="Project root used for configuration lookup (default: current directory).",
    )
    register_argument(
        validate,
        "--rule",
        dest="rules",
        action="append",
        default=None,
        help="Rule identifier to validate instead of the configured rules (repeatable).",
    )
    register_argument(
        validate,
        "--format",
        choices=[fmt.value for fmt in LogFormat],
        default=LogFormat.TEXT.value,
        help="Output format for the validation report.",
    )


def _print_text(report: ConfigurationReport) -> None:
    for issue in report.errors:
        echo(f"error [{issue.type}] {issue.message}")
        if issue.suggestion:
            echo(f"    hint: {issue.suggestion}")
    for issue in report.warnings:
        echo(f"warning [{issue.type}] {issue.message}")
    for result in report.rule_results:
        status = "ok" if result.is_valid else "invalid"
        echo(f"{result.identifier}: {status}")
        for issue in (*result.errors, *result.warnings):
            echo(f"  {issue.severity.value} [{issue.type}] {issue.message}")
            if issue.suggestion:
                echo(f"    hint: {issue.suggestion}")
    echo(f"[reviewkit] {report.summary['message']}")
    for recommendation in report.recommendations:
        echo(f"  - {recommendation}")


def execute_validate(args: argparse.Namespace) -> int:
    """Execute the validate subcommand.

    Returns:
        ``0`` when the configuration and every rule are valid, ``1`` when a
        rule failed validation and ``2`` when the configuration itself is invalid.
    """
    try:
        report = validate_rules(project_root=args.project_root, config_path=args.config, rules=args.rules)
    except ConfigValidationError as exc:
        echo(f"[reviewkit] {exc}", err=True)
        return 2
    if LogFormat.from_str(args.format) is LogFormat.JSON:
        echo(dumps(report.detailed_report()), newline=False)
    else:
        _print_text(report)
    if not report.is_valid:
        return 2
    return 1 if report.invalid_rules else 0


__all__ = ["execute_validate", "register_validate_command"]
