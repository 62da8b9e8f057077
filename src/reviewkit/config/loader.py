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

"""Configuration loading for reviewkit.

Configuration is read from ``reviewkit.toml``, ``.reviewkit.toml`` or the
``[tool.reviewkit]`` table of ``pyproject.toml``, validated with the pydantic
models and converted into a `RunConfig` whose relative paths are resolved
against the configuration file's directory.
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import cast

from pydantic import ValidationError

from reviewkit._internal.logging_utils import structured_extra
from reviewkit.core.model_types import LogComponent

from .constants import CONFIG_FILENAMES, DEFAULT_RULES, TOOL_SECTION
from .models import (
    ConfigReadError,
    InvalidConfigFileError,
    RunConfig,
    RunConfigModel,
    model_to_dataclass,
)

logger: logging.Logger = logging.getLogger("reviewkit.config")


def config_from_mapping(
    raw: Mapping[str, object],
    *,
    base_dir: Path | None = None,
    source: Path | str = "<mapping>",
) -> RunConfig:
    """Validate an in-memory configuration mapping.

    Args:
        raw: Mapping with the same shape as the TOML configuration.
        base_dir: Directory relative paths are resolved against; defaults to the
            current working directory.
        source: Label used in error messages.

    Returns:
        The resolved ``RunConfig``.

    Raises:
        InvalidConfigFileError: If the mapping fails validation.
    """
    try:
        model = RunConfigModel.model_validate(dict(raw))
    except ValidationError as exc:
        raise InvalidConfigFileError(source, exc) from exc
    return model_to_dataclass(model, (base_dir or Path.cwd()).resolve())


def _read_toml(path: Path) -> dict[str, object] | None:
    try:
        raw_map: dict[str, object] = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigReadError(path, exc) from exc
    if path.name != "pyproject.toml":
        tool_obj = raw_map.get("tool")
        if isinstance(tool_obj, dict):
            section = cast("dict[str, object]", tool_obj).get(TOOL_SECTION)
            if isinstance(section, dict):
                return cast("dict[str, object]", section)
        return raw_map
    tool_obj = raw_map.get("tool")
    if not isinstance(tool_obj, dict):
        return None
    section = cast("dict[str, object]", tool_obj).get(TOOL_SECTION)
    return cast("dict[str, object]", section) if isinstance(section, dict) else None


def load_config(explicit_path: Path | None = None, *, search_root: Path | None = None) -> RunConfig:
    """Load reviewkit configuration from disk or fall back to defaults.

    Search order when ``explicit_path`` is not given: ``reviewkit.toml``,
    ``.reviewkit.toml``, then ``pyproject.toml`` (only if it has a
    ``[tool.reviewkit]`` table) inside ``search_root``.

    Without a configuration file the defaults scan ``search_root`` with the
    builtin rules.

    Args:
        explicit_path: Optional configuration file to load; only this file is checked.
        search_root: Directory searched for configuration files; defaults to the
            current working directory.

    Returns:
        The resolved ``RunConfig``.

    Raises:
        ConfigReadError: If a configuration file cannot be read or parsed.
        InvalidConfigFileError: If the configuration fails validation.
    """
    root = (search_root or Path.cwd()).resolve()
    candidates = [explicit_path] if explicit_path is not None else [root / name for name in CONFIG_FILENAMES]
    for candidate in candidates:
        if not candidate.is_file():
            if explicit_path is not None:
                raise ConfigReadError(candidate, FileNotFoundError(str(candidate)))
            continue
        raw_map = _read_toml(candidate)
        if raw_map is None:
            continue
        logger.debug(
            "Loaded configuration from %s",
            candidate,
            extra=structured_extra(component=LogComponent.CONFIG, path=candidate),
        )
        return config_from_mapping(raw_map, base_dir=candidate.parent.resolve(), source=candidate)

    logger.debug(
        "No configuration file found under %s; using defaults",
        root,
        extra=structured_extra(component=LogComponent.CONFIG, path=root),
    )
    return RunConfig(scan_paths=[root], rules=list(DEFAULT_RULES), project_root=root)


__all__ = ["config_from_mapping", "load_config"]
