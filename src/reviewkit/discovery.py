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

"""File discovery with an incrementally invalidated listing cache.

`FileDiscovery.discover` walks configured roots, applies the inclusion policy
(extensions, hidden files, size ceiling, exclusion patterns) and returns the
analysable files. Each root's listing is stored in a `DiscoveryCache` entry and
reused while it is younger than the TTL and, with modification tracking on,
no tracked file changed or vanished and the subtree's aggregate modification
time did not advance.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from reviewkit._internal.cache import CacheEntry, DiscoveryCache
from reviewkit._internal.logging_utils import structured_extra
from reviewkit.config.models import DiscoveryConfig
from reviewkit.core.model_types import LogComponent

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger: logging.Logger = logging.getLogger("reviewkit.discovery")
_GLOB_CHARS: Final[frozenset[str]] = frozenset("*?[")


@dataclass(slots=True, frozen=True)
class DiscoveryIssue:
    """A non-fatal problem met while discovering files."""

    path: Path
    message: str


def _default_issues() -> list[DiscoveryIssue]:
    return []


@dataclass(slots=True)
class DiscoveryStats:
    """Counters for one discovery pass.

    Attributes:
        hits: Roots served from the cache.
        misses: Roots that had to be walked.
        elapsed: Wall time of the pass in seconds.
        files: Number of files returned.
        issues: Problems met during the pass.
    """

    hits: int = 0
    misses: int = 0
    elapsed: float = 0.0
    files: int = 0
    issues: list[DiscoveryIssue] = field(default_factory=_default_issues)

    @property
    def hit_rate(self) -> float:
        """Percentage of roots served from the cache, rounded to two decimals."""
        total = self.hits + self.misses
        return round(self.hits / total * 100, 2) if total else 0.0

    def to_payload(self) -> dict[str, float | int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "elapsed": round(self.elapsed, 6),
            "files": self.files,
        }


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _matches_pattern(rel_posix: str, pattern: str) -> bool:
    if _GLOB_CHARS.intersection(pattern):
        return fnmatch.fnmatch(rel_posix, pattern) or fnmatch.fnmatch(rel_posix.lstrip("/"), pattern)
    return pattern in rel_posix


def _is_excluded(root: Path, path: Path, patterns: Sequence[str], *, is_dir: bool) -> bool:
    rel = path.relative_to(root).as_posix()
    rel_posix = f"/{rel}/" if is_dir else f"/{rel}"
    return any(_matches_pattern(rel_posix, pattern) for pattern in patterns)


def _latest_mtime(root: Path, exclude_patterns: Sequence[str] = ()) -> float:
    """Return the newest modification time among the visible directories and files below ``root``.

    Subdirectory mtimes are included so that adding or removing an entry is
    noticed even when the affected file carries an old timestamp. Hidden
    entries (including the cache directory itself) and anything matching
    ``exclude_patterns`` are ignored, so build output and bytecode written
    under a scanned root do not invalidate its listing.
    """
    latest = 0.0
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = [
            name
            for name in dirnames
            if not _is_hidden(name) and not _is_excluded(root, current / name, exclude_patterns, is_dir=True)
        ]
        visible_files = [
            name
            for name in filenames
            if not _is_hidden(name) and not _is_excluded(root, current / name, exclude_patterns, is_dir=False)
        ]
        for name in (*dirnames, *visible_files):
            try:
                latest = max(latest, os.stat(os.path.join(dirpath, name)).st_mtime)
            except OSError:
                continue
    return latest


class FileDiscovery:
    """Discover analysable files under a set of roots.

    Args:
        options: Discovery tuning.
        cache: Cache store for root listings; ``None`` creates an in-memory store.
        clock: Wall-clock source used for snapshot timestamps and TTL checks.
    """

    def __init__(
        self,
        options: DiscoveryConfig | None = None,
        *,
        cache: DiscoveryCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self.options = options or DiscoveryConfig()
        self.cache = cache if cache is not None else DiscoveryCache(None)
        self._clock = clock
        self.stats = DiscoveryStats()

    def discover(self, roots: Iterable[Path | str]) -> list[Path]:
        """Return the analysable files under ``roots``, sorted and deduplicated.

        Roots that do not exist or are not directories are skipped and recorded
        in ``stats.issues``. Cache hits and misses are counted per root.

        Args:
            roots: Directories to scan.

        Returns:
            Sorted absolute file paths.
        """
        self.stats = DiscoveryStats()
        started = time.perf_counter()
        found: set[Path] = set()
        for raw_root in roots:
            root = Path(raw_root).expanduser()
            try:
                root = root.resolve()
            except OSError as exc:
                self._record_issue(root, f"Cannot resolve scan root: {exc}")
                continue
            if not root.exists():
                self._record_issue(root, "Scan root does not exist")
                continue
            if not root.is_dir():
                self._record_issue(root, "Scan root is not a directory")
                continue
            found.update(Path(item) for item in self._discover_root(root))
        if self.options.enable_caching:
            self.cache.save()
        self.stats.elapsed = time.perf_counter() - started
        self.stats.files = len(found)
        logger.info(
            "Discovered %s files (hits=%s misses=%s)",
            self.stats.files,
            self.stats.hits,
            self.stats.misses,
            extra=structured_extra(
                component=LogComponent.DISCOVERY,
                duration_ms=self.stats.elapsed * 1000,
                counts={"hits": self.stats.hits, "misses": self.stats.misses, "files": self.stats.files},
            ),
        )
        return sorted(found)

    def _discover_root(self, root: Path) -> tuple[str, ...]:
        if not self.options.enable_caching:
            self.stats.misses += 1
            return self._scan(root)
        key = self.cache.key_for(root)
        entry = self.cache.get(key)
        if entry is not None and self._entry_is_valid(entry, root):
            self.stats.hits += 1
            logger.debug(
                "Discovery cache hit for %s",
                root,
                extra=structured_extra(component=LogComponent.DISCOVERY, path=root, cached=True),
            )
            return entry.files
        self.stats.misses += 1
        logger.debug(
            "Discovery cache miss for %s",
            root,
            extra=structured_extra(component=LogComponent.DISCOVERY, path=root, cached=False),
        )
        files = self._scan(root)
        self.cache.put(key, self._snapshot(root, files))
        return files

    def _entry_is_valid(self, entry: CacheEntry, root: Path) -> bool:
        if entry.is_expired(self._clock(), self.options.cache_ttl):
            return False
        if not self.options.track_mtime:
            return True
        if next(entry.stale_files(), None) is not None:
            return False
        try:
            return _latest_mtime(root, self.options.exclude_patterns) <= entry.directory_mtime
        except OSError:
            return False

    def _snapshot(self, root: Path, files: tuple[str, ...]) -> CacheEntry:
        mtimes: dict[str, float] = {}
        directory_mtime = 0.0
        if self.options.track_mtime:
            for file_path in files:
                try:
                    mtimes[file_path] = os.stat(file_path).st_mtime
                except OSError:
                    continue
            try:
                directory_mtime = _latest_mtime(root, self.options.exclude_patterns)
            except OSError:
                directory_mtime = 0.0
        return CacheEntry(
            path=root.as_posix(),
            files=files,
            timestamp=self._clock(),
            file_mtimes=mtimes,
            directory_mtime=directory_mtime,
        )

    def _scan(self, root: Path) -> tuple[str, ...]:
        collected: list[str] = []
        failed: list[OSError] = []

        def _on_error(exc: OSError) -> None:
            failed.append(exc)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current = Path(dirpath)
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not _is_hidden(name)
                and not (current / name).is_symlink()
                and not self._is_excluded(root, current / name, is_dir=True)
            )
            for filename in sorted(filenames):
                candidate = current / filename
                if self._accepts(root, candidate):
                    collected.append(candidate.as_posix())
        for exc in failed:
            self._record_issue(Path(exc.filename or root), f"Cannot read directory: {exc.strerror or exc}")
        return tuple(collected)

    def _is_excluded(self, root: Path, path: Path, *, is_dir: bool) -> bool:
        return _is_excluded(root, path, self.options.exclude_patterns, is_dir=is_dir)

    def _accepts(self, root: Path, path: Path) -> bool:
        if _is_hidden(path.name) or path.is_symlink():
            return False
        if path.suffix.lower() not in self.options.include_extensions:
            return False
        if self._is_excluded(root, path, is_dir=False):
            return False
        try:
            size = path.stat().st_size
        except OSError as exc:
            self._record_issue(path, f"Cannot stat file: {exc.strerror or exc}")
            return False
        if size > self.options.max_file_size:
            logger.debug(
                "Skipping %s (%s bytes exceeds %s)",
                path,
                size,
                self.options.max_file_size,
                extra=structured_extra(component=LogComponent.DISCOVERY, path=path),
            )
            return False
        return True

    def _record_issue(self, path: Path, message: str) -> None:
        self.stats.issues.append(DiscoveryIssue(path=path, message=message))
        logger.warning(
            "%s: %s",
            message,
            path,
            extra=structured_extra(component=LogComponent.DISCOVERY, path=path),
        )

    def is_file_processable(self, path: Path) -> bool:
        """Return whether ``path`` is an existing, readable file within the size ceiling."""
        try:
            stat = path.stat()
        except OSError:
            return False
        return path.is_file() and os.access(path, os.R_OK) and stat.st_size <= self.options.max_file_size

    def read_file_contents(self, path: Path) -> str | None:
        """Read ``path`` as UTF-8 text, or return ``None`` when it is not processable."""
        if not self.is_file_processable(path):
            return None
        return path.read_text(encoding="utf-8", errors="replace")

    def clear_cache(self) -> int:
        """Drop every cached listing; return how many entries were removed."""
        return self.cache.clear()

    def cache_stats(self) -> dict[str, object]:
        """Return a maintenance view of the cache store and the last pass."""
        return {
            "enabled": self.options.enable_caching,
            "cache_file": self.cache.path.as_posix() if self.cache.path else None,
            "entries": len(self.cache),
            "ttl": self.options.cache_ttl,
            "track_mtime": self.options.track_mtime,
            **self.stats.to_payload(),
        }


__all__ = ["DiscoveryIssue", "DiscoveryStats", "FileDiscovery"]
