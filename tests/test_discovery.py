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

"""Unit tests for file discovery and listing-cache invalidation."""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from reviewkit._internal.cache import DiscoveryCache
from reviewkit.config import DiscoveryConfig
from reviewkit.discovery import FileDiscovery
from tests.fixtures.projects import SampleProject, write_file

pytestmark = pytest.mark.unit


def _discovery(project: SampleProject, **overrides: object) -> FileDiscovery:
    options = DiscoveryConfig(**overrides)  # type: ignore[arg-type]
    return FileDiscovery(options, cache=DiscoveryCache(project.root / ".reviewkit_cache"))


def _bump(path: Path, seconds: float = 10.0) -> None:
    later = time.time() + seconds
    os.utime(path, (later, later))


def test_discover_applies_inclusion_policy(sample_project: SampleProject) -> None:
    src = sample_project.src
    _ = write_file(src / ".hidden.py", "x = 1\n")
    _ = write_file(src / ".venv" / "lib.py", "x = 1\n")
    _ = write_file(src / "__pycache__" / "mod.py", "x = 1\n")
    _ = write_file(src / "notes.txt", "text\n")
    _ = write_file(src / "pkg" / "UPPER.PY", "x = 1\n")
    _ = write_file(src / "big.py", "x = 1\n" * 50)

    discovery = _discovery(sample_project, max_file_size=200)
    files = discovery.discover([src])

    names = [path.relative_to(src).as_posix() for path in files]
    assert names == ["pkg/UPPER.PY", "pkg/clean.py", "pkg/handlers.py", "pkg/wide.py"]
    assert files == sorted(files)


def test_exclude_patterns_support_substrings_and_globs(sample_project: SampleProject) -> None:
    src = sample_project.src
    _ = write_file(src / "generated" / "schema.py", "x = 1\n")
    _ = write_file(src / "pkg" / "test_clean.py", "x = 1\n")

    discovery = _discovery(sample_project, exclude_patterns=("/generated/", "*/test_*.py"))
    names = {path.name for path in discovery.discover([src])}

    assert "schema.py" not in names
    assert "test_clean.py" not in names
    assert "clean.py" in names


def test_symlinked_files_are_skipped(sample_project: SampleProject) -> None:
    link = sample_project.src / "pkg" / "alias.py"
    try:
        link.symlink_to(sample_project.clean)
    except OSError:
        pytest.skip("symlinks unavailable")
    files = _discovery(sample_project).discover([sample_project.src])
    assert link not in files


def test_second_pass_is_served_from_cache(sample_project: SampleProject) -> None:
    first = _discovery(sample_project)
    listing = first.discover([sample_project.src])
    assert first.stats.misses == 1
    assert first.stats.hits == 0

    second = _discovery(sample_project)
    assert second.discover([sample_project.src]) == listing
    assert second.stats.hits == 1
    assert second.stats.misses == 0
    assert second.stats.hit_rate == pytest.approx(100.0)


def test_modified_file_invalidates_entry(sample_project: SampleProject) -> None:
    _ = _discovery(sample_project).discover([sample_project.src])
    _bump(sample_project.clean)

    discovery = _discovery(sample_project)
    _ = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 1


def test_deleted_file_invalidates_entry(sample_project: SampleProject) -> None:
    _ = _discovery(sample_project).discover([sample_project.src])
    sample_project.long_line.unlink()

    discovery = _discovery(sample_project)
    files = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 1
    assert sample_project.long_line not in files


def test_new_file_invalidates_entry(sample_project: SampleProject) -> None:
    _ = _discovery(sample_project).discover([sample_project.src])
    added = write_file(sample_project.src / "pkg" / "added.py", "x = 1\n")
    _bump(added)

    discovery = _discovery(sample_project)
    files = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 1
    assert added in files


def test_changes_under_excluded_directories_keep_entry(sample_project: SampleProject) -> None:
    bytecode = write_file(sample_project.src / "pkg" / "__pycache__" / "clean.cpython-312.pyc", "old")
    _ = _discovery(sample_project).discover([sample_project.src])
    _ = bytecode.write_text("recompiled", encoding="utf-8")
    _bump(bytecode)
    _bump(bytecode.parent)

    discovery = _discovery(sample_project)
    _ = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 0
    assert discovery.stats.hits == 1


def test_expired_entry_is_rescanned(sample_project: SampleProject) -> None:
    now = [1_000.0]
    cache = DiscoveryCache(sample_project.root / ".reviewkit_cache")
    discovery = FileDiscovery(DiscoveryConfig(cache_ttl=60.0), cache=cache, clock=lambda: now[0])
    _ = discovery.discover([sample_project.src])

    now[0] += 30.0
    _ = discovery.discover([sample_project.src])
    assert discovery.stats.hits == 1

    now[0] += 60.0
    _ = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 1


def test_missing_and_non_directory_roots_are_reported(sample_project: SampleProject) -> None:
    discovery = _discovery(sample_project)
    files = discovery.discover([sample_project.root / "missing", sample_project.clean, sample_project.src])

    assert len(files) == 3
    messages = sorted(issue.message for issue in discovery.stats.issues)
    assert messages == ["Scan root does not exist", "Scan root is not a directory"]


def test_overlapping_roots_are_deduplicated(sample_project: SampleProject) -> None:
    files = _discovery(sample_project).discover([sample_project.src, sample_project.src / "pkg"])
    assert len(files) == len(set(files)) == 3


def test_caching_disabled_bypasses_store(sample_project: SampleProject) -> None:
    discovery = _discovery(sample_project, enable_caching=False)
    _ = discovery.discover([sample_project.src])
    _ = discovery.discover([sample_project.src])
    assert discovery.stats.misses == 1
    assert len(discovery.cache) == 0
    assert not (sample_project.root / ".reviewkit_cache").exists()


def test_file_helpers_respect_size_ceiling(sample_project: SampleProject) -> None:
    discovery = _discovery(sample_project, max_file_size=10)
    assert discovery.is_file_processable(sample_project.clean) is False
    assert discovery.read_file_contents(sample_project.clean) is None

    roomy = _discovery(sample_project)
    assert roomy.is_file_processable(sample_project.clean) is True
    assert roomy.read_file_contents(sample_project.clean) == sample_project.clean.read_text(encoding="utf-8")
    assert roomy.is_file_processable(sample_project.src / "nope.py") is False


def test_clear_cache_and_stats(sample_project: SampleProject) -> None:
    discovery = _discovery(sample_project)
    _ = discovery.discover([sample_project.src])
    stats = discovery.cache_stats()
    assert stats["entries"] == 1
    assert stats["misses"] == 1
    assert discovery.clear_cache() == 1
    assert discovery.cache_stats()["entries"] == 0
