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

"""Configuration models and validation for reviewkit.

Pydantic models validate raw TOML or mapping input; the conversion functions
turn them into the `@dataclass` configuration objects the runner consumes.
The runner never reads the environment or configuration files itself; it is
handed a resolved `RunConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from reviewkit._internal.exceptions import ReviewkitValidationError
from reviewkit.core.model_types import FailOnPolicy

from .constants import (
    CONFIG_VERSION,
    DEFAULT_CACHE_TTL,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_RULES,
)
from .validation import (
    dedupe_preserve,
    ensure_list,
    normalise_extension,
    require_non_negative_float,
    require_non_negative_int,
)

FAIL_ON_ALLOWED_VALUES: Final[tuple[str, ...]] = tuple(policy.value for policy in FailOnPolicy)


class ConfigValidationError(ReviewkitValidationError):
    """Raised when configuration data contains invalid values."""


class ConfigFieldChoiceError(ConfigValidationError):
    """Raised when a configuration field is provided with an unsupported value."""

    def __init__(self, field: str, allowed: tuple[str, ...]) -> None:
        """Initialise the exception with the field name and allowed values.

        Args:
            field: The name of the configuration field with an invalid value.
            allowed: Tuple of allowed values for this field.
        """
        self.field = field
        self.allowed = allowed
        allowed_text = ", ".join(sorted(allowed))
        super().__init__(f"{field} must be one of: {allowed_text}")


class UnsupportedConfigVersionError(ConfigValidationError):
    """Raised when a configuration file declares an unsupported schema version."""

    def __init__(self, provided: int, expected: int) -> None:
        self.provided = provided
        self.expected = expected
        super().__init__(f"Unsupported config_version {provided}; expected {expected}")


class ConfigReadError(ConfigValidationError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: Path, error: Exception) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Unable to read {path}: {error}")


class InvalidConfigFileError(ConfigValidationError):
    """Raised when configuration data fails model validation."""

    def __init__(self, source: Path | str, error: Exception) -> None:
        """Initialise the exception with the configuration source and validation error.

        Args:
            source: Path of the configuration file, or a label for in-memory data.
            error: The underlying validation exception.
        """
        self.source = source
        self.error = error
        super().__init__(f"Invalid reviewkit configuration in {source}: {error}")


def _default_include_extensions() -> tuple[str, ...]:
    return DEFAULT_INCLUDE_EXTENSIONS


def _default_exclude_patterns() -> tuple[str, ...]:
    return DEFAULT_EXCLUDE_PATTERNS


def _default_paths() -> list[Path]:
    return []


def _default_rules() -> list[str]:
    return []


@dataclass(slots=True, frozen=True)
class DiscoveryConfig:
    """File discovery tuning.

    Attributes:
        include_extensions: Lower-case extensions (with leading dot) to analyse.
        exclude_patterns: Substrings or glob patterns matched against root-relative
            POSIX paths (prefixed with ``/``) to skip.
        max_file_size: Byte ceiling; larger files are skipped.
        enable_caching: Whether discovery consults the cache store.
        cache_ttl: Seconds a cached subtree listing stays usable.
        track_mtime: Whether cached listings are invalidated by modification times.
        cache_dir: Directory holding the persisted cache; ``None`` keeps it in memory.
    """

    include_extensions: tuple[str, ...] = field(default_factory=_default_include_extensions)
    exclude_patterns: tuple[str, ...] = field(default_factory=_default_exclude_patterns)
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    enable_caching: bool = True
    cache_ttl: float = DEFAULT_CACHE_TTL
    track_mtime: bool = True
    cache_dir: Path | None = None


@dataclass(slots=True, frozen=True)
class ReportingConfig:
    """Where and how run reports are delivered.

    Attributes:
        output_path: Optional JSON file the run report is written to.
        fail_on: Diagnostic severity threshold that makes the CLI exit non-zero.
    """

    output_path: Path | None = None
    fail_on: FailOnPolicy = FailOnPolicy.ERRORS


@dataclass(slots=True)
class RunConfig:
    """Resolved configuration for one run.

    Attributes:
        scan_paths: Root directories to discover files under (absolute).
        rules: Rule identifiers in execution order.
        discovery: File discovery tuning.
        reporting: Report delivery settings.
        project_root: Directory relative paths were resolved against.
    """

    scan_paths: list[Path] = field(default_factory=_default_paths)
    rules: list[str] = field(default_factory=_default_rules)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    project_root: Path | None = None


class DiscoveryConfigModel(BaseModel):
    """Pydantic model for the ``[discovery]`` table."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    include_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_EXTENSIONS))
    exclude_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    enable_caching: bool = True
    cache_ttl: float = DEFAULT_CACHE_TTL
    track_mtime: bool = True
    cache_dir: Path | None = None

    @field_validator("include_extensions", "exclude_patterns", mode="before")
    @classmethod
    def _coerce_list(cls, value: object) -> list[str]:
        return ensure_list(value)

    @field_validator("max_file_size", mode="before")
    @classmethod
    def _validate_size(cls, value: object, info: ValidationInfo) -> int:
        return require_non_negative_int(value, context=info.field_name or "value")

    @field_validator("cache_ttl", mode="before")
    @classmethod
    def _validate_ttl(cls, value: object, info: ValidationInfo) -> float:
        return require_non_negative_float(value, context=info.field_name or "value")

    @model_validator(mode="after")
    def _normalise(self) -> DiscoveryConfigModel:
        extensions = [normalise_extension(item) for item in self.include_extensions]
        self.include_extensions = dedupe_preserve(ext for ext in extensions if ext)
        self.exclude_patterns = dedupe_preserve(self.exclude_patterns)
        return self


class ReportingConfigModel(BaseModel):
    """Pydantic model for the ``[reporting]`` table."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    output_path: Path | None = None
    fail_on: FailOnPolicy = FailOnPolicy.ERRORS

    @field_validator("fail_on", mode="before")
    @classmethod
    def _normalise_fail_on(cls, value: object) -> FailOnPolicy:
        if value is None:
            return FailOnPolicy.ERRORS
        if isinstance(value, FailOnPolicy):
            return value
        try:
            return FailOnPolicy.from_str(str(value))
        except ValueError as exc:
            msg = "fail_on"
            raise ConfigFieldChoiceError(msg, FAIL_ON_ALLOWED_VALUES) from exc


class RunConfigModel(BaseModel):
    """Pydantic model validating the top-level reviewkit configuration.

    Attributes:
        config_version: Schema version number for the configuration file.
        scan_paths: Root directories to scan.
        rules: Rule identifiers in execution order.
        discovery: File discovery settings.
        reporting: Report delivery settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    config_version: int = Field(default=CONFIG_VERSION)
    scan_paths: list[str] | None = None
    rules: list[str] | None = None
    discovery: DiscoveryConfigModel = Field(default_factory=DiscoveryConfigModel)
    reporting: ReportingConfigModel = Field(default_factory=ReportingConfigModel)

    @field_validator("scan_paths", "rules", mode="before")
    @classmethod
    def _coerce_list(cls, value: object) -> list[str]:
        return ensure_list(value)

    @model_validator(mode="after")
    def _normalise(self) -> RunConfigModel:
        if self.config_version != CONFIG_VERSION:
            raise UnsupportedConfigVersionError(self.config_version, CONFIG_VERSION)
        if self.scan_paths is not None:
            self.scan_paths = dedupe_preserve(self.scan_paths)
        return self


def _resolved(base_dir: Path, value: Path | str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (base_dir / path).resolve()


def discovery_from_model(model: DiscoveryConfigModel, base_dir: Path) -> DiscoveryConfig:
    return DiscoveryConfig(
        include_extensions=tuple(model.include_extensions),
        exclude_patterns=tuple(model.exclude_patterns),
        max_file_size=model.max_file_size,
        enable_caching=model.enable_caching,
        cache_ttl=model.cache_ttl,
        track_mtime=model.track_mtime,
        cache_dir=_resolved(base_dir, model.cache_dir) if model.cache_dir is not None else None,
    )


def model_to_dataclass(model: RunConfigModel, base_dir: Path) -> RunConfig:
    """Convert a validated ``RunConfigModel`` into a runtime ``RunConfig``.

    Relative scan paths, the cache directory and the report output path are
    resolved against ``base_dir``. Omitted ``scan_paths`` default to
    ``base_dir`` and omitted ``rules`` to the builtin rules; explicitly empty
    lists are kept so validation can report them.

    Args:
        model: The validated model.
        base_dir: Directory relative paths are resolved against.

    Returns:
        A ``RunConfig`` ready to hand to the runner.
    """
    reporting = ReportingConfig(
        output_path=(
            _resolved(base_dir, model.reporting.output_path) if model.reporting.output_path is not None else None
        ),
        fail_on=model.reporting.fail_on,
    )
    scan_paths = (
        [_resolved(base_dir, raw) for raw in model.scan_paths] if model.scan_paths is not None else [base_dir]
    )
    rules = list(model.rules) if model.rules is not None else list(DEFAULT_RULES)
    return RunConfig(
        scan_paths=scan_paths,
        rules=rules,
        discovery=discovery_from_model(model.discovery, base_dir),
        reporting=reporting,
        project_root=base_dir,
    )


__all__ = [
    "ConfigFieldChoiceError",
    "ConfigReadError",
    "ConfigValidationError",
    "DiscoveryConfig",
    "DiscoveryConfigModel",
    "InvalidConfigFileError",
    "ReportingConfig",
    "ReportingConfigModel",
    "RunConfig",
    "RunConfigModel",
    "UnsupportedConfigVersionError",
    "discovery_from_model",
    "model_to_dataclass",
]
