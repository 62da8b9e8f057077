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

"""Cross-platform advisory file locking used when persisting caches."""

from __future__ import annotations

import importlib
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Final, Protocol, cast

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

__all__ = ["LockTimeoutError", "file_lock"]

_POLL_INTERVAL: Final[float] = 0.05


class LockTimeoutError(TimeoutError):
    """Raised when a lock cannot be acquired before the deadline."""

    def __init__(self, path: Path, timeout: float) -> None:
        self.path = path
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:.2f}s waiting for lock {path}")


class _FcntlModule(Protocol):
    LOCK_EX: int
    LOCK_NB: int
    LOCK_UN: int

    def flock(self, fd: int, operation: int) -> None: ...


class _MsvcrtModule(Protocol):
    LK_NBLCK: int
    LK_UNLCK: int

    def locking(self, fd: int, mode: int, size: int) -> None: ...


def _import_optional(name: str) -> object | None:
    try:  # pragma: no cover - platform dependent
        return importlib.import_module(name)
    except ImportError:  # pragma: no cover
        return None


fcntl_module = cast("_FcntlModule | None", _import_optional("fcntl"))
msvcrt_module = cast("_MsvcrtModule | None", _import_optional("msvcrt"))


def _acquire(fd: int) -> None:
    if fcntl_module is not None:
        fcntl_module.flock(fd, fcntl_module.LOCK_EX | fcntl_module.LOCK_NB)
    elif msvcrt_module is not None:  # pragma: no cover - windows only
        msvcrt_module.locking(fd, msvcrt_module.LK_NBLCK, 1)


def _release(fd: int) -> None:
    if fcntl_module is not None:
        fcntl_module.flock(fd, fcntl_module.LOCK_UN)
    elif msvcrt_module is not None:  # pragma: no cover - windows only
        msvcrt_module.locking(fd, msvcrt_module.LK_UNLCK, 1)


@contextmanager
def file_lock(path: Path, *, timeout: float | None = None) -> Iterator[None]:
    """Hold an exclusive advisory lock on ``path`` for the duration of the block.

    The lock file is created if needed. Platforms without ``fcntl`` or
    ``msvcrt`` get a no-op lock.

    Args:
        path: Path to the lock file on disk.
        timeout: Seconds to wait before giving up; ``None`` waits forever.

    Yields:
        ``None`` once the lock has been acquired.

    Raises:
        LockTimeoutError: If ``timeout`` elapses before the lock is acquired.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    deadline = None if timeout is None else time.monotonic() + timeout
    with path.open("a+b") as handle:
        fd = handle.fileno()
        while True:
            try:
                _acquire(fd)
                break
            except OSError:
                if deadline is not None and time.monotonic() >= deadline:
                    raise LockTimeoutError(path, timeout or 0.0) from None
                time.sleep(_POLL_INTERVAL)
        try:
            yield
        finally:
            _release(fd)
