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

"""``reviewkit run``: execute a review and report diagnostics."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit.api import run_review
from reviewkit.cli.helpers import echo, register_argument
from reviewkit.config import ConfigValidationError, load_config
from reviewkit.core.model_types import FailOnPolicy, LogFormat, SeverityLevel
from reviewkit.exceptions import RunAbortedError
from reviewkit.json import dumps

if TYPE_CHECKING:
    from reviewkit.cli.helpers import SubparserCollection
    from reviewkit.report import RunReport

EXIT_OK = 0
EXIT_THRESHOLD = 1
EXIT_ABORTED = 2


def register_run_command(subparsers: SubparserCollection) -> None:
    """Attach the ``reviewkit run`` command to the CLI."""
    run = subparsers.add_parser(
        "run",
        help="Run the configured rules over the source tree",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    register_argument(
        run,
        "paths",
        nargs="*",
        type=Path,
        help="Directories to scan (default: configured scan_paths).",
    )
    register_argument(run, "--config", type=Path, default=None, help="Explicit configuration file.")
    register_argument(
        run,
        "--project-root",
        type=Path,
        default=None,
        help="Project root used for configuration lookup (default: current directory).",
    )
    register_argument(
        run,
        "--rule",
        dest="rules",
        action="append",
        default=None,
        help="Rule identifier to run instead of the configured rules (repeatable).",
    )
    register_argument(run, "--output", type=Path, default=None, help="Write the JSON run report to this file.")
    register_argument(run, "--no-cache", action="store_true", help="Bypass the file discovery cache.")
    register_argument(
        run,
        "--fail-on",
        choices=[policy.value for policy in FailOnPolicy],
        default=None,
        help="Exit non-zero when diagnostics at this level exist (default: configured policy).",
    )
    register_argument(
        run,
        "--format",
        choices=[fmt.value for fmt in LogFormat],
        default=LogFormat.TEXT.value,
        help="Output format for the report printed to stdout.",
    )


def _threshold_hit(report: RunReport, policy: FailOnPolicy) -> bool:
    counts = report.violation_counts()
    match policy:
        case FailOnPolicy.NEVER:
            return False
        case FailOnPolicy.ERRORS:
            return counts[SeverityLevel.ERROR] > 0
        case FailOnPolicy.WARNINGS:
            return counts[SeverityLevel.ERROR] + counts[SeverityLevel.WARNING] > 0


def print_report(report: RunReport, fmt: LogFormat) -> None:
    """Print ``report`` as JSON or as one line per diagnostic followed by a summary."""
    if fmt is LogFormat.JSON:
        echo(dumps(report.to_payload()), newline=False)
        return
    for diagnostic in report.diagnostics:
        location = diagnostic.path.as_posix() if diagnostic.path else "<unknown>"
        if diagnostic.line:
            location = f"{location}:{diagnostic.line}"
        severity = diagnostic.severity.value if diagnostic.severity else "warning"
        echo(f"{location}: [{severity}] {diagnostic.rule}: {diagnostic.message}")
    for entry in report.errors:
        echo(f"[reviewkit] error ({entry.category.value}): {entry.message}", err=True)
    for entry in report.warnings:
        echo(f"[reviewkit] warning ({entry.category.value}): {entry.message}", err=True)
    stats = report.statistics
    echo(
        f"[reviewkit] {stats.total_violations} diagnostic(s) in {stats.files_scanned} file(s); "
        f"{stats.rules_processed} rule(s) run, {stats.rules_failed} failed ({report.state.value})",
    )


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run subcommand.

    Returns:
        ``0`` on success, ``1`` when the fail-on threshold is hit and ``2``
        when the run was aborted.
    """
    fmt = LogFormat.from_str(args.format)
    root = (args.project_root or Path.cwd()).resolve()
    try:
        config = load_config(args.config, search_root=root)
        report = run_review(
            project_root=root,
            config=config,
            scan_paths=args.paths or None,
            rules=args.rules,
            output_path=args.output,
            use_cache=False if args.no_cache else None,
        )
    except RunAbortedError as exc:
        print_report(exc.report, fmt)
        echo(f"[reviewkit] {exc}", err=True)
        return EXIT_ABORTED
    except ConfigValidationError as exc:
        echo(f"[reviewkit] {exc}", err=True)
        return EXIT_ABORTED
    print_report(report, fmt)
    policy = FailOnPolicy.from_str(args.fail_on) if args.fail_on else config.reporting.fail_on
    return EXIT_THRESHOLD if _threshold_hit(report, policy) else EXIT_OK


__all__ = ["EXIT_ABORTED", "EXIT_OK", "EXIT_THRESHOLD", "execute_run", "print_report", "register_run_command"]
