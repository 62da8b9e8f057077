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

"""Execution orchestrator.

`RuleRunner.run` validates the configuration and every configured rule,
discovers files, runs each surviving rule against each file and aggregates
the outcome into a `RunReport`. A rule that raises on one file is recorded
and the run continues; malformed diagnostics are dropped and recorded.

The runner moves through ``idle -> validating_config -> discovering ->
executing -> finalizing -> completed``; a structural configuration error or
an unexpected failure of the runner itself ends in ``aborted``.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from reviewkit._internal.cache import DiscoveryCache
from reviewkit._internal.logging_utils import structured_extra
from reviewkit.config.constants import CACHE_DIRNAME
from reviewkit.core.model_types import ErrorCategory, LogComponent, LogLevel, RuleCategory, RunState, SeverityLevel
from reviewkit.core.type_aliases import RuleId
from reviewkit.core.types import InvalidDiagnosticError, coerce_diagnostic
from reviewkit.discovery import FileDiscovery
from reviewkit.exceptions import CriticalRunError, RunAbortedError
from reviewkit.json import as_str
from reviewkit.parsing import ParseCache
from reviewkit.report import RunReport
from reviewkit.rules.registry import RuleInstantiationError, instantiate_rule
from reviewkit.rules.validator import RuleValidator

if TYPE_CHECKING:
    from collections.abc import Callable

    from reviewkit.config.models import RunConfig
    from reviewkit.core.type_aliases import ProgressCallback
    from reviewkit.core.types import Diagnostic, RuleDescriptor, ValidationResult
    from reviewkit.rules.base import Rule

logger: logging.Logger = logging.getLogger("reviewkit.runner")

PROGRESS_TOTAL: Final[int] = 100
_EXECUTION_START: Final[int] = 20
_EXECUTION_END: Final[int] = 90
_LOG_METHODS: Final[Mapping[LogLevel, int]] = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.INFO: logging.INFO,
}


@dataclass(slots=True, frozen=True)
class RuleFault:
    """An exception raised by a rule while checking one file."""

    fault_type: str
    message: str
    exception: BaseException | None = field(default=None, compare=False, repr=False)


@dataclass(slots=True, frozen=True)
class RuleOutcome:
    """Result of running one rule against one file.

    Attributes:
        rule: Identifier of the rule.
        path: File that was checked.
        diagnostics: Raw items returned by the rule; not yet validated.
        fault: Set when the rule raised or returned something other than a sequence.
        duration: Wall time of the call in seconds.
    """

    rule: RuleId
    path: Path
    diagnostics: tuple[object, ...] = ()
    fault: RuleFault | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.fault is None


def execute_rule_on_file(
    rule: Rule,
    path: Path,
    *,
    identifier: RuleId | None = None,
    clock: Callable[[], float] = time.perf_counter,
) -> RuleOutcome:
    """Run ``rule.check`` on ``path`` and capture its result or fault.

    Touches no shared state, so calls may be distributed across workers.

    Args:
        rule: Instantiated rule.
        path: File to check.
        identifier: Identifier recorded on the outcome; defaults to the class name.
        clock: Monotonic time source.

    Returns:
        The outcome; never raises for failures inside the rule.
    """
    rule_id = identifier or RuleId(type(rule).__name__)
    started = clock()
    try:
        returned: object = rule.check(str(path))
        if returned is None:
            items: tuple[object, ...] = ()
        elif isinstance(returned, str | bytes | Mapping) or not isinstance(returned, Iterable):
            message = f"check() returned {type(returned).__name__}, expected a list of diagnostics"
            raise TypeError(message)  # noqa: TRY301
        else:
            items = tuple(returned)
    except Exception as exc:
        fault = RuleFault(fault_type=type(exc).__name__, message=str(exc), exception=exc)
        return RuleOutcome(rule=rule_id, path=path, fault=fault, duration=clock() - started)
    return RuleOutcome(rule=rule_id, path=path, diagnostics=items, duration=clock() - started)


def build_discovery(config: RunConfig) -> FileDiscovery:
    """Create the file discovery service described by ``config``.

    The listing cache lives in ``discovery.cache_dir`` or, failing that,
    ``<project_root>/.reviewkit_cache``; without either it is kept in memory.
    """
    options = config.discovery
    cache_dir = options.cache_dir
    if cache_dir is None and config.project_root is not None:
        cache_dir = config.project_root / CACHE_DIRNAME
    cache = DiscoveryCache(cache_dir if options.enable_caching else None)
    return FileDiscovery(options, cache=cache)


class RuleRunner:
    """Run configured rules over discovered files and build a run report.

    Args:
        config: Run configuration.
        progress: Optional ``(step, total, message)`` callback; total is 100.
        discovery: File discovery service; built from ``config`` when omitted.
        validator: Rule validator; a default `RuleValidator` when omitted.
        clock: Monotonic time source for performance metrics.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        progress: ProgressCallback | None = None,
        discovery: FileDiscovery | None = None,
        validator: RuleValidator | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config
        self._progress_callback = progress
        self.discovery = discovery or build_discovery(config)
        self.validator = validator or RuleValidator()
        self._clock = clock
        self._state = RunState.IDLE
        self._transitions: list[tuple[RunState, RunState]] = []

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def transitions(self) -> tuple[tuple[RunState, RunState], ...]:
        return tuple(self._transitions)

    def run(self) -> RunReport:
        """Execute one run.

        Returns:
            The completed report.

        Raises:
            RunAbortedError: If the configuration has structural errors.
            CriticalRunError: If the runner fails unexpectedly.
        """
        self._state = RunState.IDLE
        self._transitions = []
        report = RunReport()
        report.statistics.scan_paths = [Path(path).as_posix() for path in self.config.scan_paths]
        report.statistics.rules_configured = len(self.config.rules)
        started = self._clock()
        self._emit_progress(0, "Starting review")
        try:
            valid = self._validate(report, started)
            files = self._discover(report)
            self._transition(report, RunState.EXECUTING)
            if files:
                self._execute(report, valid, files)
            self._finalize(report, started)
        except RunAbortedError:
            raise
        except Exception as exc:
            self._record(
                report,
                LogLevel.ERROR,
                f"Critical error during review: {exc}",
                ErrorCategory.CRITICAL,
                {"fault_type": type(exc).__name__, "state": self._state},
                exc_info=exc,
            )
            self._abort(report, started)
            raise CriticalRunError(report, f"Run failed unexpectedly: {exc}") from exc
        return report

    def _transition(self, report: RunReport, target: RunState) -> None:
        self._transitions.append((self._state, target))
        logger.debug(
            "Runner state %s -> %s",
            self._state,
            target,
            extra=structured_extra(component=LogComponent.RUNNER, state=target),
        )
        self._state = target
        report.state = target

    def _abort(self, report: RunReport, started: float) -> None:
        report.performance.total_time = self._clock() - started
        self._transition(report, RunState.ABORTED)

    def _emit_progress(self, step: int, message: str) -> None:
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(step, PROGRESS_TOTAL, message)
        except Exception:
            logger.warning(
                "Progress callback failed at step %s",
                step,
                exc_info=True,
                extra=structured_extra(component=LogComponent.RUNNER),
            )

    def _record(  # noqa: PLR0913
        self,
        report: RunReport,
        level: LogLevel,
        message: str,
        category: ErrorCategory,
        context: Mapping[str, object] | None = None,
        *,
        exc_info: BaseException | None = None,
    ) -> None:
        entry = report.record(level, message, category, context)
        ctx = entry.context
        logger.log(
            _LOG_METHODS[level],
            message,
            exc_info=exc_info,
            extra=structured_extra(
                component=LogComponent.RUNNER,
                category=category,
                rule=as_str(ctx.get("rule")) or None,
                path=as_str(ctx.get("path")) or None,
                details=dict(ctx),
            ),
        )

    def _validate(self, report: RunReport, started: float) -> list[ValidationResult]:
        self._transition(report, RunState.VALIDATING_CONFIG)
        self._emit_progress(5, "Validating configuration")
        config_report = self.validator.validate_configuration(self.config)
        report.validation = list(config_report.rule_results)
        for issue in config_report.errors:
            self._record(
                report,
                LogLevel.ERROR,
                issue.message,
                ErrorCategory.CONFIGURATION,
                {"type": issue.type, "suggestion": issue.suggestion},
            )
        for issue in config_report.warnings:
            self._record(
                report,
                LogLevel.WARNING,
                issue.message,
                ErrorCategory.CONFIGURATION,
                {"type": issue.type, "suggestion": issue.suggestion},
            )
        if not config_report.is_valid:
            self._abort(report, started)
            raise RunAbortedError(report)

        valid: list[ValidationResult] = []
        for result in config_report.rule_results:
            for issue in result.errors:
                self._record(
                    report,
                    LogLevel.ERROR,
                    issue.message,
                    ErrorCategory.RULE_VALIDATION,
                    {"rule": result.identifier, "type": issue.type, "suggestion": issue.suggestion},
                )
            for issue in result.warnings:
                self._record(
                    report,
                    LogLevel.WARNING,
                    issue.message,
                    ErrorCategory.RULE_VALIDATION,
                    {"rule": result.identifier, "type": issue.type, "suggestion": issue.suggestion},
                )
            if result.is_valid:
                valid.append(result)
            else:
                report.statistics.rules_failed += 1
        self._emit_progress(10, f"Validated {len(valid)} of {len(config_report.rule_results)} rules")
        return valid

    def _discover(self, report: RunReport) -> list[Path]:
        self._transition(report, RunState.DISCOVERING)
        self._emit_progress(15, "Discovering files")
        started = self._clock()
        files = self.discovery.discover(self.config.scan_paths)
        report.performance.file_scanning = self._clock() - started
        stats = self.discovery.stats
        report.performance.cache = dict(stats.to_payload())
        for issue in stats.issues:
            self._record(
                report,
                LogLevel.WARNING,
                issue.message,
                ErrorCategory.FILE_SCANNING,
                {"path": issue.path},
            )
        report.statistics.files_scanned = len(files)
        if not files:
            self._record(
                report,
                LogLevel.WARNING,
                "No files found to analyse",
                ErrorCategory.FILE_SCANNING,
                {"scan_paths": report.statistics.scan_paths},
            )
        self._emit_progress(_EXECUTION_START, f"Discovered {len(files)} files")
        return files

    def _execute(self, report: RunReport, valid: list[ValidationResult], files: list[Path]) -> None:
        seen: set[tuple[str, str, int, str, str]] = set()
        skipped: set[Path] = set()
        span = _EXECUTION_END - _EXECUTION_START
        for index, result in enumerate(valid):
            step = _EXECUTION_START + (span * index) // max(len(valid), 1)
            self._emit_progress(step, f"Running {result.identifier}")
            self._run_rule(report, result, files, seen, skipped)
        report.statistics.files_skipped = len(skipped)
        self._emit_progress(_EXECUTION_END, "All rules executed")

    def _run_rule(
        self,
        report: RunReport,
        result: ValidationResult,
        files: list[Path],
        seen: set[tuple[str, str, int, str, str]],
        skipped: set[Path],
    ) -> None:
        identifier = RuleId(result.identifier)
        started = self._clock()
        if result.rule_class is None:
            return
        try:
            rule = instantiate_rule(result.rule_class, identifier=identifier)
        except RuleInstantiationError as exc:
            self._record(
                report,
                LogLevel.ERROR,
                str(exc),
                ErrorCategory.RULE_ERROR,
                {"rule": identifier, "fault_type": type(exc.error).__name__, "message": str(exc.error)},
                exc_info=exc.error,
            )
            report.statistics.rules_failed += 1
            report.performance.rules[identifier] = self._clock() - started
            return

        category, severity = _rule_defaults(result.descriptor)
        files_failed = 0
        for path in files:
            if not path.is_file() or not os.access(path, os.R_OK):
                skipped.add(path)
                self._record(
                    report,
                    LogLevel.WARNING,
                    f"File is missing or unreadable, skipping: {path}",
                    ErrorCategory.FILE_PROCESSING,
                    {"rule": identifier, "path": path},
                )
                continue
            outcome = execute_rule_on_file(rule, path, identifier=identifier, clock=self._clock)
            if outcome.fault is not None:
                files_failed += 1
                self._record(
                    report,
                    LogLevel.ERROR,
                    f"Rule '{identifier}' failed on {path}: {outcome.fault.message}",
                    ErrorCategory.RULE_ERROR,
                    {
                        "rule": identifier,
                        "path": path,
                        "fault_type": outcome.fault.fault_type,
                        "message": outcome.fault.message,
                    },
                    exc_info=outcome.fault.exception,
                )
                continue
            for item in outcome.diagnostics:
                diagnostic = self._accept(report, item, identifier, path, category, severity)
                if diagnostic is None or diagnostic.dedupe_key in seen:
                    continue
                seen.add(diagnostic.dedupe_key)
                report.diagnostics.append(diagnostic)

        report.statistics.rules_processed += 1
        if files_failed:
            report.statistics.rules_failed += 1
            self._record(
                report,
                LogLevel.WARNING,
                f"Rule '{identifier}' failed on {files_failed} file(s)",
                ErrorCategory.RULE_PROCESSING,
                {"rule": identifier, "files_failed": files_failed},
            )
        report.performance.rules[identifier] = self._clock() - started
        parse_cache = getattr(rule, "parse_cache", None)
        if isinstance(parse_cache, ParseCache):
            report.performance.parse_cache[identifier] = dict(parse_cache.stats())

    def _accept(  # noqa: PLR0913
        self,
        report: RunReport,
        item: object,
        identifier: RuleId,
        path: Path,
        category: RuleCategory,
        severity: SeverityLevel,
    ) -> Diagnostic | None:
        try:
            return coerce_diagnostic(item, rule=identifier, path=path, category=category, severity=severity)
        except InvalidDiagnosticError as exc:
            report.statistics.violations_dropped += 1
            self._record(
                report,
                LogLevel.WARNING,
                f"Dropped invalid diagnostic from rule '{identifier}' for {path}: {exc.reason}",
                ErrorCategory.VIOLATION_VALIDATION,
                {"rule": identifier, "path": path, "reason": exc.reason},
            )
            return None

    def _finalize(self, report: RunReport, started: float) -> None:
        self._transition(report, RunState.FINALIZING)
        self._emit_progress(95, "Finalizing report")
        report.statistics.total_violations = len(report.diagnostics)
        report.performance.total_time = self._clock() - started
        self._record(
            report,
            LogLevel.INFO,
            (
                f"Review completed: {report.statistics.total_violations} violation(s) "
                f"in {report.statistics.files_scanned} file(s)"
            ),
            ErrorCategory.GENERAL,
            {"duration": round(report.performance.total_time, 6)},
        )
        self._transition(report, RunState.COMPLETED)
        self._emit_progress(PROGRESS_TOTAL, "Review completed")


def _rule_defaults(descriptor: RuleDescriptor | None) -> tuple[RuleCategory, SeverityLevel]:
    if descriptor is None:
        return RuleCategory.GENERAL, SeverityLevel.WARNING
    return descriptor.category, descriptor.severity


__all__ = [
    "PROGRESS_TOTAL",
    "RuleFault",
    "RuleOutcome",
    "RuleRunner",
    "build_discovery",
    "execute_rule_on_file",
]
