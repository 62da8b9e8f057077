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

"""Persistent cache store for directory discovery snapshots.

Each entry records the file list discovered under one root together with the
modification-time fingerprints needed to decide whether the listing is still
current. The store is a plain JSON file and is safe to delete at any time.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final, TypedDict, cast

from reviewkit._internal.logging_utils import structured_extra
from reviewkit._internal.utils import file_lock
from reviewkit.config.validation import coerce_float, ensure_list
from reviewkit.core.model_types import LogComponent
from reviewkit.core.type_aliases import CacheKey

if TYPE_CHECKING:
    from collections.abc import Iterator

logger: logging.Logger = logging.getLogger("reviewkit.cache")
CACHE_FILENAME: Final[str] = "discovery.json"
LOCK_FILENAME: Final[str] = "discovery.lock"


def _default_mtimes() -> dict[str, float]:
    return {}


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Snapshot of one discovered subtree.

    Attributes:
        path: Canonical root path the snapshot was taken from.
        files: Ordered absolute file paths discovered under the root.
        timestamp: Epoch seconds when the snapshot was taken.
        file_mtimes: Modification time of every listed file (empty when
            modification tracking is disabled).
        directory_mtime: Aggregate modification time of the subtree (0.0 when
            modification tracking is disabled).
    """

    path: str
    files: tuple[str, ...]
    timestamp: float
    file_mtimes: Mapping[str, float] = field(default_factory=_default_mtimes)
    directory_mtime: float = 0.0

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.timestamp >= ttl

    def stale_files(self) -> Iterator[str]:
        """Yield listed files that were modified or removed since the snapshot."""
        for file_path, recorded in self.file_mtimes.items():
            try:
                current = os.stat(file_path).st_mtime
            except OSError:
                yield file_path
                continue
            if current > recorded:
                yield file_path


class _EntryJson(TypedDict, total=False):
    path: str
    files: list[str]
    timestamp: float
    file_mtimes: dict[str, float]
    directory_mtime: float


class _Payload(TypedDict, total=False):
    entries: dict[str, _EntryJson]


def _parse_cache_entry(key_str: str, raw: Mapping[str, object]) -> tuple[CacheKey, CacheEntry] | None:
    path = raw.get("path")
    if not isinstance(path, str) or not path:
        return None
    mtimes_any = raw.get("file_mtimes")
    mtimes: dict[str, float] = {}
    if isinstance(mtimes_any, Mapping):
        for file_path, value in cast("Mapping[object, object]", mtimes_any).items():
            mtimes[str(file_path)] = coerce_float(value)
    entry = CacheEntry(
        path=path,
        files=tuple(ensure_list(raw.get("files"))),
        timestamp=coerce_float(raw.get("timestamp")),
        file_mtimes=mtimes,
        directory_mtime=coerce_float(raw.get("directory_mtime")),
    )
    return CacheKey(key_str), entry


def _entry_to_json(entry: CacheEntry) -> _EntryJson:
    return {
        "path": entry.path,
        "files": list(entry.files),
        "timestamp": entry.timestamp,
        "file_mtimes": dict(entry.file_mtimes),
        "directory_mtime": entry.directory_mtime,
    }


class DiscoveryCache:
    """In-memory view of the on-disk discovery cache.

    Args:
        cache_dir: Directory holding ``discovery.json``; ``None`` keeps the
            cache purely in memory.
    """

    def __init__(self, cache_dir: Path | None = None) -> None:
        super().__init__()
        self.cache_dir = cache_dir
        self.path: Path | None = cache_dir / CACHE_FILENAME if cache_dir is not None else None
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._dirty = False
        self._load()

    @staticmethod
    def key_for(path: Path | str) -> CacheKey:
        """Return the stable cache key of a canonical root path."""
        canonical = Path(path).as_posix()
        return CacheKey(hashlib.sha256(canonical.encode("utf-8")).hexdigest())

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            raw_any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.debug(
                "Ignoring unreadable discovery cache %s: %s",
                self.path,
                exc,
                extra=structured_extra(component=LogComponent.CACHE, path=self.path),
            )
            return
        if not isinstance(raw_any, dict):
            return
        entries_any = cast("dict[str, object]", raw_any).get("entries")
        if not isinstance(entries_any, dict):
            return
        for key_str, entry_raw in cast("dict[str, object]", entries_any).items():
            if not isinstance(entry_raw, Mapping):
                continue
            parsed = _parse_cache_entry(key_str, cast("Mapping[str, object]", entry_raw))
            if parsed is None:
                continue
            cache_key, cache_entry = parsed
            self._entries[cache_key] = cache_entry
        logger.debug(
            "Loaded %s discovery cache entries",
            len(self._entries),
            extra=structured_extra(component=LogComponent.CACHE, path=self.path),
        )

    def save(self) -> None:
        """Persist the cache when it changed since loading or the last save."""
        if not self._dirty or self.path is None:
            return
        payload: _Payload = {
            "entries": {key: _entry_to_json(entry) for key, entry in sorted(self._entries.items())},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = self.path.with_name(LOCK_FILENAME)
        with file_lock(lock_path):
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self.path)
        self._dirty = False
        logger.debug(
            "Saved %s discovery cache entries",
            len(self._entries),
            extra=structured_extra(component=LogComponent.CACHE, path=self.path),
        )

    def get(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, key: CacheKey, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous entry wholesale."""
        self._entries[key] = entry
        self._dirty = True

    def invalidate(self, key: CacheKey) -> bool:
        """Drop the entry stored under ``key``; return whether one existed."""
        if self._entries.pop(key, None) is None:
            return False
        self._dirty = True
        return True

    def clear(self) -> int:
        """Remove every entry and delete the persisted file.

        Returns:
            Number of entries removed.
        """
        removed = len(self._entries)
        self._entries.clear()
        self._dirty = False
        if self.path is not None:
            self.path.unlink(missing_ok=True)
        return removed

    def entries(self) -> dict[CacheKey, CacheEntry]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["CACHE_FILENAME", "CacheEntry", "DiscoveryCache"]
