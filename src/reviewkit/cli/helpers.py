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

"""Shared CLI helpers: output, argument registration and subparser typing."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import argparse


class SubparserCollection(Protocol):
    """Protocol describing the subset of ``argparse._SubParsersAction`` we rely on."""

    def add_parser(self, *args: object, **kwargs: object) -> argparse.ArgumentParser:
        """Register a CLI subcommand on an argparse subparser collection."""
        ...  # pragma: no cover - Protocol helper


class ArgumentRegistrar(Protocol):
    def add_argument(self, *args: Any, **kwargs: Any) -> argparse.Action: ...  # noqa: ANN401


def register_argument(registrar: ArgumentRegistrar, *args: Any, **kwargs: Any) -> None:  # noqa: ANN401
    """Register an argument on a parser/argument group, discarding the action handle."""
    _ = registrar.add_argument(*args, **kwargs)


def echo(message: str, *, newline: bool = True, err: bool = False) -> None:
    """Write a message to stdout or stderr."""
    stream = sys.stderr if err else sys.stdout
    _ = stream.write(message)
    if newline:
        _ = stream.write("\n")


__all__ = ["ArgumentRegistrar", "SubparserCollection", "echo", "register_argument"]
