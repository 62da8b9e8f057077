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

"""``reviewkit cache``: inspect or clear the file discovery cache."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit._internal.cache import DiscoveryCache
from reviewkit.cli.helpers import echo, register_argument
from reviewkit.config import CACHE_DIRNAME
from reviewkit.discovery import FileDiscovery
from reviewkit.json import dumps

if TYPE_CHECKING:
    from reviewkit.cli.helpers import SubparserCollection


def register_cache_command(subparsers: SubparserCollection) -> None:
    """Attach the ``reviewkit cache`` command to the CLI."""
    cache = subparsers.add_parser(
        "cache",
        help="Inspect or clear the file discovery cache",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cache_sub = cache.add_subparsers(dest="cache_action", required=True)
    for action, help_text in (("clear", "Remove every cached listing"), ("stats", "Show cache statistics")):
        sub = cache_sub.add_parser(action, help=help_text, formatter_class=argparse.ArgumentDefaultsHelpFormatter)
        register_argument(
            sub,
            "--project-root",
            type=Path,
            default=None,
            help="Project root owning the cache (default: current directory).",
        )
        register_argument(
            sub,
            "--path",
            type=Path,
            default=None,
            help=f"Explicit cache directory (default: <project>/{CACHE_DIRNAME}).",
        )


def _discovery_for(args: argparse.Namespace) -> FileDiscovery:
    root = (args.project_root or Path.cwd()).resolve()
    target: Path = args.path if args.path is not None else root / CACHE_DIRNAME
    return FileDiscovery(cache=DiscoveryCache(target.resolve()))


def _handle_clear(args: argparse.Namespace) -> int:
    discovery = _discovery_for(args)
    removed = discovery.clear_cache()
    echo(f"[reviewkit] Cleared {removed} cached listing(s) from {discovery.cache.path}")
    return 0


def _handle_stats(args: argparse.Namespace) -> int:
    echo(dumps(_discovery_for(args).cache_stats()), newline=False)
    return 0


def execute_cache(args: argparse.Namespace) -> int:
    """Execute the cache subcommand.

    Raises:
        SystemExit: If the action name is unrecognised.
    """
    action_value = getattr(args, "cache_action", None)
    if action_value == "clear":
        return _handle_clear(args)
    if action_value == "stats":
        return _handle_stats(args)
    msg = f"Unknown cache action '{action_value}'"
    raise SystemExit(msg)


__all__ = ["execute_cache", "register_cache_command"]
