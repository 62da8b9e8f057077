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

"""Argument parsing and command dispatch for the ``reviewkit`` CLI."""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING, Final

from reviewkit import __version__
from reviewkit.cli.commands import cache as cache_command
from reviewkit.cli.commands import rules as rules_command
from reviewkit.cli.commands import run as run_command
from reviewkit.cli.commands import validate as validate_command
from reviewkit.cli.helpers import echo, register_argument
from reviewkit.core.model_types import LogFormat
from reviewkit.logging import LOG_FORMATS, LOG_LEVELS, configure_logging

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger: logging.Logger = logging.getLogger("reviewkit.cli")

REVIEWKIT_VERSION: Final[str] = __version__

type CommandHandler = Callable[[argparse.Namespace], int]


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point for the reviewkit command-line interface.

    Args:
        argv: Command-line arguments to parse. If None, uses sys.argv.

    Returns:
        Exit code from the executed command handler.
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.version:
        echo(f"reviewkit {REVIEWKIT_VERSION}")
        return 0
    if args.command is None:
        parser.error("No command provided.")
    _initialize_logging(args.log_format, args.log_level)
    handler = _command_handlers().get(args.command)
    if handler is None:
        parser.error(f"Unknown command {args.command}")
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reviewkit",
        description="Run pluggable static-analysis rules over Python source trees.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    register_argument(
        parser,
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Select logging output format (human-readable text or structured JSON).",
    )
    register_argument(
        parser,
        "--log-level",
        choices=LOG_LEVELS,
        default="warning",
        help="Set verbosity of logged events.",
    )
    register_argument(
        parser,
        "--version",
        action="store_true",
        help="Print the reviewkit version and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_command.register_run_command(subparsers)
    validate_command.register_validate_command(subparsers)
    rules_command.register_rules_command(subparsers)
    cache_command.register_cache_command(subparsers)
    return parser


def _initialize_logging(log_format: str, log_level: str) -> None:
    config = configure_logging(LogFormat.from_str(log_format), log_level=log_level)
    logger.debug("Logging configured (%s, %s)", config.format, config.level_name)


def _command_handlers() -> dict[str, CommandHandler]:
    return {
        "cache": cache_command.execute_cache,
        "rules": rules_command.execute_rules,
        "run": run_command.execute_run,
        "validate": validate_command.execute_validate,
    }


__all__ = ["REVIEWKIT_VERSION", "main"]
