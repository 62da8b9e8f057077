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

"""High-level entry points: load configuration, run a review, write the report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit._internal.logging_utils import structured_extra
from reviewkit.config import CACHE_DIRNAME, RunConfig, load_config
from reviewkit.core.model_types import LogComponent
from reviewkit.exceptions import RunAbortedError
from reviewkit.report import write_report
from reviewkit.rules.validator import RuleValidator
from reviewkit.runner import RuleRunner

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reviewkit.core.type_aliases import ProgressCallback
    from reviewkit.report import RunReport
    from reviewkit.rules.validator import ConfigurationReport

logger: logging.Logger = logging.getLogger("reviewkit")


@dataclass(slots=True)
class _ReviewOverrides:
    scan_paths: Sequence[Path | str] | None = None
    rules: Sequence[str] | None = None
    output_path: Path | None = None
    use_cache: bool | None = None


def _prepare_config(
    *,
    project_root: Path | None,
    config: RunConfig | None,
    config_path: Path | None,
    overrides: _ReviewOverrides,
) -> RunConfig:
    root = (project_root or Path.cwd()).resolve()
    cfg = config or load_config(config_path, search_root=root)
    project = cfg.project_root or root
    discovery = cfg.discovery
    if discovery.cache_dir is None:
        discovery = replace(discovery, cache_dir=project / CACHE_DIRNAME)
    if overrides.use_cache is not None:
        discovery = replace(discovery, enable_caching=overrides.use_cache)
    reporting = cfg.reporting
    if overrides.output_path is not None:
        reporting = replace(reporting, output_path=overrides.output_path)
    scan_paths = list(cfg.scan_paths)
    if overrides.scan_paths:
        scan_paths = [
            path if path.is_absolute() else (root / path)
            for path in (Path(raw) for raw in overrides.scan_paths)
        ]
    rules = list(overrides.rules) if overrides.rules else list(cfg.rules)
    return RunConfig(
        scan_paths=scan_paths,
        rules=rules,
        discovery=discovery,
        reporting=reporting,
        project_root=project,
    )


def run_review(  # noqa: PLR0913
    *,
    project_root: Path | None = None,
    config: RunConfig | None = None,
    config_path: Path | None = None,
    scan_paths: Sequence[Path | str] | None = None,
    rules: Sequence[str] | None = None,
    output_path: Path | None = None,
    use_cache: bool | None = None,
    progress: ProgressCallback | None = None,
) -> RunReport:
    """Run a review and optionally persist the JSON report.

    Args:
        project_root: Directory configuration is searched in and relative
            overrides resolve against; defaults to the current directory.
        config: Preloaded configuration; skips loading from disk.
        config_path: Explicit configuration file.
        scan_paths: Override for the configured scan roots.
        rules: Override for the configured rule identifiers.
        output_path: Override for ``reporting.output_path``.
        use_cache: Override for ``discovery.enable_caching``.
        progress: Optional ``(step, total, message)`` callback.

    Returns:
        The completed run report.

    Raises:
        RunAbortedError: If the configuration is invalid. The report is still
            written when an output path is configured.
    """
    cfg = _prepare_config(
        project_root=project_root,
        config=config,
        config_path=config_path,
        overrides=_ReviewOverrides(
            scan_paths=scan_paths,
            rules=rules,
            output_path=output_path,
            use_cache=use_cache,
        ),
    )
    runner = RuleRunner(cfg, progress=progress)
    try:
        report = runner.run()
    except RunAbortedError as exc:
        _persist(cfg, exc.report)
        raise
    _persist(cfg, report)
    logger.info(
        "Review finished with %s diagnostic(s)",
        len(report.diagnostics),
        extra=structured_extra(component=LogComponent.RUNNER, state=report.state),
    )
    return report


def _persist(config: RunConfig, report: RunReport) -> None:
    target = config.reporting.output_path
    if target is None:
        return
    if not target.is_absolute() and config.project_root is not None:
        target = config.project_root / target
    write_report(report, target)


def validate_rules(
    *,
    project_root: Path | None = None,
    config: RunConfig | None = None,
    config_path: Path | None = None,
    rules: Sequence[str] | None = None,
) -> ConfigurationReport:
    """Validate the configuration and its rules without running anything."""
    cfg = _prepare_config(
        project_root=project_root,
        config=config,
        config_path=config_path,
        overrides=_ReviewOverrides(rules=rules),
    )
    return RuleValidator().validate_configuration(cfg)


__all__ = ["run_review", "validate_rules"]
