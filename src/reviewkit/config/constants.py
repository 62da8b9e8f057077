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

"""Default values for reviewkit configuration."""

from __future__ import annotations

from typing import Final, Literal

CONFIG_VERSION: Final[int] = 0
CACHE_DIRNAME: Final[str] = ".reviewkit_cache"

DEFAULT_MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024
DEFAULT_CACHE_TTL: Final[float] = 3600.0
DEFAULT_INCLUDE_EXTENSIONS: Final[tuple[str, ...]] = (".py",)
DEFAULT_EXCLUDE_PATTERNS: Final[tuple[str, ...]] = (
    "/__pycache__/",
    "/node_modules/",
    "/site-packages/",
    "/venv/",
    "/build/",
    "/dist/",
    "*.egg-info/*",
)
DEFAULT_RULES: Final[tuple[str, ...]] = ("LineLengthRule", "BareExceptRule")

type ConfigFilename = Literal["reviewkit.toml", ".reviewkit.toml", "pyproject.toml"]
CONFIG_FILENAMES: Final[tuple[ConfigFilename, ...]] = (
    "reviewkit.toml",
    ".reviewkit.toml",
    "pyproject.toml",
)
TOOL_SECTION: Final[str] = "reviewkit"

__all__ = [
    "CACHE_DIRNAME",
    "CONFIG_FILENAMES",
    "CONFIG_VERSION",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_INCLUDE_EXTENSIONS",
    "DEFAULT_MAX_FILE_SIZE",
    "DEFAULT_RULES",
    "TOOL_SECTION",
]
