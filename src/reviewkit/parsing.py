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

"""Bounded cache of parsed file representations.

Rules that build an expensive representation of a file (an AST, a token
stream) can share it through a `ParseCache`. Entries are keyed by the file's
resolved path and modification time, so an edit produces a new key without any
explicit invalidation. Eviction is by insertion order: once the bound is
exceeded the oldest inserted entry is dropped, regardless of how recently it
was read.
"""

from __future__ import annotations

import ast
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, Generic, TypeVar

from reviewkit._internal.logging_utils import structured_extra
from reviewkit.core.model_types import LogComponent

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger("reviewkit.parsing")
DEFAULT_MAX_ENTRIES: Final[int] = 100

T = TypeVar("T")

type ParseKey = tuple[str, int]


@dataclass(slots=True, frozen=True)
class ParsedEntry(Generic[T]):
    """Cached parse result with the time it took to produce."""

    value: T
    parse_time: float


class ParseCache(Generic[T]):
    """FIFO-bounded cache of ``parser(path)`` results.

    Args:
        parser: Callable producing the parsed representation of a file.
        max_entries: Maximum number of cached entries; must be positive.
    """

    def __init__(self, parser: Callable[[Path], T], *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        super().__init__()
        if max_entries < 1:
            message = f"max_entries must be positive (got {max_entries})"
            raise ValueError(message)
        self._parser = parser
        self.max_entries = max_entries
        self._entries: dict[ParseKey, ParsedEntry[T]] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.total_parse_time = 0.0

    @staticmethod
    def key_for(path: Path) -> ParseKey:
        resolved = path.resolve()
        return resolved.as_posix(), resolved.stat().st_mtime_ns

    def get_or_parse(self, path: str | Path) -> T:
        """Return the cached representation of ``path``, parsing it on a miss.

        Args:
            path: File to parse.

        Returns:
            The parsed representation.

        Raises:
            OSError: If the file cannot be stat-ed.
            Exception: Whatever the parser raises; failed parses are not cached.
        """
        key = self.key_for(Path(path))
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached.value
        self.misses += 1
        started = time.perf_counter()
        value = self._parser(Path(key[0]))
        elapsed = time.perf_counter() - started
        self.total_parse_time += elapsed
        self._entries[key] = ParsedEntry(value=value, parse_time=elapsed)
        self._evict()
        return value

    def _evict(self) -> None:
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self.evictions += 1
            logger.debug(
                "Evicted parse cache entry for %s",
                oldest[0],
                extra=structured_extra(component=LogComponent.PARSING, path=oldest[0]),
            )

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str | Path):
            return False
        try:
            return self.key_for(Path(path)) in self._entries
        except OSError:
            return False

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[ParseKey]:
        """Return cached keys in insertion (eviction) order."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, float | int]:
        """Return cache counters and aggregate parse timing."""
        lookups = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": round(self.hits / lookups * 100, 2) if lookups else 0.0,
            "total_parse_time": round(self.total_parse_time, 6),
            "average_parse_time": round(self.total_parse_time / self.misses, 6) if self.misses else 0.0,
        }


def parse_python_source(path: Path) -> ast.Module:
    """Parse a Python file into an ``ast.Module``."""
    source = path.read_text(encoding="utf-8", errors="replace")
    return ast.parse(source, filename=path.as_posix())


def python_ast_cache(max_entries: int = DEFAULT_MAX_ENTRIES) -> ParseCache[ast.Module]:
    return ParseCache(parse_python_source, max_entries=max_entries)


__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "ParseCache",
    "ParsedEntry",
    "parse_python_source",
    "python_ast_cache",
]
