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

"""Configuration management for reviewkit.

This package provides the typed configuration consumed by the runner, the
pydantic models that validate raw input, and the TOML loader.
"""

from __future__ import annotations

from .constants import CACHE_DIRNAME, CONFIG_VERSION, DEFAULT_RULES
from .loader import config_from_mapping, load_config
from .models import (
    ConfigFieldChoiceError,
    ConfigReadError,
    ConfigValidationError,
    DiscoveryConfig,
    DiscoveryConfigModel,
    InvalidConfigFileError,
    ReportingConfig,
    ReportingConfigModel,
    RunConfig,
    RunConfigModel,
    UnsupportedConfigVersionError,
)

__all__ = [
    "CACHE_DIRNAME",
    "CONFIG_VERSION",
    "DEFAULT_RULES",
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
    "config_from_mapping",
    "load_config",
]
