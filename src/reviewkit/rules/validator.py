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

"""Contract validation for configured rules and run configurations.

`RuleValidator` checks, before any file is touched, that each configured rule
identifier resolves to a class that can be instantiated without arguments and
that exposes a conforming ``check`` method. Validation never raises: every
problem becomes a `ValidationIssue` on the returned result.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import os
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from reviewkit._internal.logging_utils import structured_extra
from reviewkit.config.loader import config_from_mapping
from reviewkit.config.models import ConfigValidationError, RunConfig
from reviewkit.core.model_types import LogComponent, LogLevel
from reviewkit.core.type_aliases import IssueCode
from reviewkit.core.types import RuleDescriptor, ValidationIssue, ValidationResult

from .base import DEFAULT_DESCRIPTION, RULE_CONTRACT_MEMBERS, BaseRule, describe_rule_class
from .registry import RuleNotFoundError, resolve_rule_class

if TYPE_CHECKING:
    from collections.abc import Callable

    from reviewkit.json import JSONValue

logger: logging.Logger = logging.getLogger("reviewkit.validator")

MAX_RECOMMENDED_RULES: Final[int] = 20
STANDARD_PARAMETER_NAMES: Final[frozenset[str]] = frozenset({"path", "file_path"})
_PATH_ANNOTATIONS: Final[frozenset[str]] = frozenset({"str", "Path", "PurePath", "PathLike", "StrPath"})
_SEQUENCE_ANNOTATIONS: Final[frozenset[str]] = frozenset({
    "list",
    "List",
    "tuple",
    "Tuple",
    "Sequence",
    "MutableSequence",
    "Collection",
    "Iterable",
    "Iterator",
    "Generator",
})
_PERFORMANCE_PATTERNS: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (
        re.compile(r"\.read_text\("),
        "Iterate the file line by line instead of reading it whole",
    ),
    (
        re.compile(r"\.read\(\s*\)"),
        "Bound the read size or iterate the file line by line",
    ),
    (
        re.compile(r"\.readlines\("),
        "Iterate the file object directly instead of materialising every line",
    ),
)
_UNCACHED_PARSE: Final[re.Pattern[str]] = re.compile(r"\bast\.parse\(")


def _issue(
    code: str,
    message: str,
    suggestion: str = "",
    severity: LogLevel = LogLevel.ERROR,
) -> ValidationIssue:
    return ValidationIssue(type=IssueCode(code), message=message, suggestion=suggestion, severity=severity)


def _annotation_names(annotation: object) -> list[str]:
    """Return the base names of every member of a (possibly union) annotation.

    Works on both evaluated annotations and the strings produced by
    ``from __future__ import annotations``.
    """
    text = annotation.__name__ if isinstance(annotation, type) else str(annotation)
    names: list[str] = []
    for part in text.split("|"):
        member = part.strip().strip("'\"")
        if not member or member == "None":
            continue
        base = member.split("[", 1)[0].strip()
        names.append(base.rsplit(".", 1)[-1])
    return names


def _is_path_annotation(annotation: object) -> bool:
    names = _annotation_names(annotation)
    return bool(names) and all(name in _PATH_ANNOTATIONS for name in names)


def _is_sequence_annotation(annotation: object) -> bool:
    names = _annotation_names(annotation)
    return bool(names) and all(name in _SEQUENCE_ANNOTATIONS for name in names)


def _required_parameters(parameters: Sequence[inspect.Parameter]) -> list[inspect.Parameter]:
    positional = {inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD}
    return [
        parameter
        for parameter in parameters
        if parameter.default is inspect.Parameter.empty
        and (parameter.kind in positional or parameter.kind is inspect.Parameter.KEYWORD_ONLY)
    ]


def _module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


@dataclass(slots=True)
class _IssueCollector:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    info: list[ValidationIssue] = field(default_factory=list)

    def add(self, issue: ValidationIssue) -> None:
        if issue.severity is LogLevel.ERROR:
            self.errors.append(issue)
        elif issue.severity is LogLevel.WARNING:
            self.warnings.append(issue)
        else:
            self.info.append(issue)


@dataclass(slots=True, frozen=True)
class ConfigurationReport:
    """Aggregated outcome of validating a run configuration.

    Attributes:
        errors: Structural (configuration-level) errors. Any error aborts a run.
        warnings: Structural warnings.
        rule_results: Per-rule validation results in declaration order.
        valid_rules: Identifiers accepted for execution, in declaration order.
        config: Typed configuration, when the input could be converted.
        config_keys: Top-level keys present in the validated configuration.
    """

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    rule_results: tuple[ValidationResult, ...] = ()
    valid_rules: tuple[str, ...] = ()
    config: RunConfig | None = None
    config_keys: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def invalid_rules(self) -> tuple[str, ...]:
        return tuple(result.identifier for result in self.rule_results if not result.is_valid)

    def all_errors(self) -> list[ValidationIssue]:
        return [*self.errors, *(issue for result in self.rule_results for issue in result.errors)]

    def all_warnings(self) -> list[ValidationIssue]:
        return [*self.warnings, *(issue for result in self.rule_results for issue in result.warnings)]

    def all_info(self) -> list[ValidationIssue]:
        return [issue for result in self.rule_results for issue in result.info]

    @property
    def summary(self) -> dict[str, JSONValue]:
        """Return counts, validity, overall severity and a human-readable message."""
        total_errors = len(self.all_errors())
        total_warnings = len(self.all_warnings())
        if self.errors:
            severity = "error"
            message = f"Configuration has {len(self.errors)} error(s) that must be fixed"
        elif total_errors:
            severity = "error"
            message = f"{len(self.invalid_rules)} rule(s) failed validation and will be skipped"
        elif total_warnings:
            severity = "warning"
            message = f"Configuration has {total_warnings} warning(s) to review"
        else:
            severity = "success"
            message = "Configuration is valid"
        return {
            "total_errors": total_errors,
            "total_warnings": total_warnings,
            "total_info": len(self.all_info()),
            "is_valid": self.is_valid,
            "severity": severity,
            "message": message,
        }

    @property
    def recommendations(self) -> list[str]:
        recommendations: list[str] = []
        if self.errors:
            recommendations.append("Fix all configuration errors before running the review")
        if self.invalid_rules:
            joined = ", ".join(self.invalid_rules)
            recommendations.append(f"Fix or remove the rules that failed validation: {joined}")
        if self.all_warnings():
            recommendations.append("Review and address validation warnings")
        if not recommendations:
            recommendations.append("Configuration is well-structured and ready for use")
        return recommendations

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "is_valid": self.is_valid,
            "errors": [issue.to_payload() for issue in self.errors],
            "warnings": [issue.to_payload() for issue in self.warnings],
            "rules": [result.to_payload() for result in self.rule_results],
            "valid_rules": list(self.valid_rules),
            "summary": self.summary,
        }

    def detailed_report(self) -> dict[str, JSONValue]:
        """Return the full JSON view: validation, configuration and rule analyses, recommendations."""
        scan_paths = [path.as_posix() for path in self.config.scan_paths] if self.config else []
        config_analysis: dict[str, JSONValue] = {
            "scan_paths": cast("JSONValue", scan_paths),
            "scan_paths_count": len(scan_paths),
            "rules_count": len(self.rule_results),
            "has_discovery_config": "discovery" in self.config_keys,
            "has_reporting_config": "reporting" in self.config_keys,
            "config_keys": list(self.config_keys),
        }
        rule_analysis: dict[str, JSONValue] = {
            "total_rules": len(self.rule_results),
            "valid_rules": len(self.valid_rules),
            "invalid_rules": len(self.invalid_rules),
            "valid_rule_identifiers": list(self.valid_rules),
            "invalid_rule_identifiers": list(self.invalid_rules),
        }
        return {
            "validation": self.to_payload(),
            "config_analysis": config_analysis,
            "rule_analysis": rule_analysis,
            "recommendations": cast("JSONValue", self.recommendations),
        }


class RuleValidator:
    """Validate rule identifiers and run configurations without raising.

    Args:
        resolver: Callable mapping an identifier to a class. Defaults to
            `resolve_rule_class`; must raise ``RuleNotFoundError`` for unknown
            identifiers.
    """

    def __init__(self, resolver: Callable[[str], type] | None = None) -> None:
        self._resolver = resolver or resolve_rule_class

    def validate_rule(self, identifier: str) -> ValidationResult:
        """Validate one configured rule identifier.

        Args:
            identifier: Registered rule name or importable ``module:Class`` path.

        Returns:
            Result carrying ordered errors, warnings and info notes.
        """
        issues = _IssueCollector()
        try:
            rule_class = self._resolver(identifier)
        except RuleNotFoundError as exc:
            suggestion = (
                f"Did you mean: {', '.join(exc.suggestions)}?"
                if exc.suggestions
                else "Check that the class exists and its module is importable"
            )
            issues.add(_issue("class_not_found", f"Rule class '{identifier}' not found: {exc.reason}", suggestion))
            return self._finish(identifier, issues)

        instantiable = self._check_instantiable(identifier, rule_class, issues)
        self._check_interface(identifier, rule_class, issues)
        self._check_method(identifier, rule_class, issues)
        if instantiable:
            self._check_constructor(identifier, rule_class, issues)
        self._check_dependencies(identifier, rule_class, issues)
        descriptor = self._describe(identifier, rule_class, issues)
        self._check_documentation(identifier, rule_class, descriptor, issues)
        self._check_performance(identifier, rule_class, issues)
        issues.add(
            _issue(
                "class_info",
                f"Rule '{identifier}' resolves to {rule_class.__module__}.{rule_class.__qualname__}",
                severity=LogLevel.INFO,
            )
        )
        return self._finish(identifier, issues, descriptor=descriptor, rule_class=rule_class)

    def _finish(
        self,
        identifier: str,
        issues: _IssueCollector,
        *,
        descriptor: RuleDescriptor | None = None,
        rule_class: type | None = None,
    ) -> ValidationResult:
        result = ValidationResult(
            identifier=identifier,
            errors=tuple(issues.errors),
            warnings=tuple(issues.warnings),
            info=tuple(issues.info),
            descriptor=descriptor,
            rule_class=rule_class,
        )
        logger.debug(
            "Validated rule '%s' (%d error(s), %d warning(s))",
            identifier,
            len(result.errors),
            len(result.warnings),
            extra=structured_extra(
                component=LogComponent.VALIDATOR,
                rule=identifier,
                counts={"errors": len(result.errors), "warnings": len(result.warnings)},
            ),
        )
        return result

    @staticmethod
    def _check_instantiable(identifier: str, rule_class: type, issues: _IssueCollector) -> bool:
        if inspect.isabstract(rule_class) or getattr(rule_class, "_is_protocol", False):
            issues.add(
                _issue(
                    "class_not_instantiable",
                    f"Rule class '{identifier}' is not instantiable",
                    "Ensure the class is concrete: not abstract and not a Protocol",
                )
            )
            return False
        return True

    @staticmethod
    def _check_interface(identifier: str, rule_class: type, issues: _IssueCollector) -> None:
        if issubclass(rule_class, BaseRule):
            return
        missing = [member for member in RULE_CONTRACT_MEMBERS if not hasattr(rule_class, member)]
        if missing:
            issues.add(
                _issue(
                    "interface_not_implemented",
                    f"Rule class '{identifier}' does not implement the rule contract (missing: {', '.join(missing)})",
                    "Subclass reviewkit.rules.BaseRule or provide every rule contract member",
                )
            )

    @staticmethod
    def _check_method(identifier: str, rule_class: type, issues: _IssueCollector) -> None:
        raw = inspect.getattr_static(rule_class, "check", None)
        if raw is None:
            issues.add(
                _issue(
                    "missing_check_method",
                    f"Rule class '{identifier}' is missing the required 'check' method",
                    "Implement def check(self, path: str) -> list[Diagnostic]",
                )
            )
            return
        if isinstance(raw, staticmethod | classmethod) or not inspect.isfunction(raw):
            issues.add(
                _issue(
                    "check_method_not_public",
                    f"'check' on '{identifier}' is not a public instance method",
                    "Define check as a regular method taking self and the file path",
                )
            )
            return
        function = cast("Callable[..., object]", raw)
        parameters = list(inspect.signature(function).parameters.values())[1:]
        required = _required_parameters(parameters)
        if len(required) != 1:
            issues.add(
                _issue(
                    "invalid_check_method_parameters",
                    f"'check' on '{identifier}' must take exactly one required parameter, found {len(required)}",
                    "Method signature should be: check(self, path: str) -> list[Diagnostic]",
                )
            )
            return
        parameter = required[0]
        if parameter.annotation is not inspect.Parameter.empty and not _is_path_annotation(parameter.annotation):
            issues.add(
                _issue(
                    "invalid_check_method_parameter_type",
                    f"'check' parameter on '{identifier}' is annotated as {parameter.annotation}",
                    "Annotate the path parameter as str",
                )
            )
        if parameter.name not in STANDARD_PARAMETER_NAMES:
            issues.add(
                _issue(
                    "non_standard_parameter_name",
                    f"'check' parameter on '{identifier}' has non-standard name: {parameter.name}",
                    "Consider renaming the parameter to 'path' for consistency",
                    LogLevel.WARNING,
                )
            )
        returns = inspect.signature(function).return_annotation
        if returns is not inspect.Signature.empty and not _is_sequence_annotation(returns):
            issues.add(
                _issue(
                    "invalid_check_method_return_type",
                    f"'check' on '{identifier}' is annotated to return {returns}",
                    "Annotate the return type as list[Diagnostic]",
                )
            )

    @staticmethod
    def _check_constructor(identifier: str, rule_class: type, issues: _IssueCollector) -> None:
        try:
            signature = inspect.signature(rule_class)
        except (TypeError, ValueError):
            return
        required = _required_parameters(list(signature.parameters.values()))
        if required:
            names = ", ".join(parameter.name for parameter in required)
            issues.add(
                _issue(
                    "constructor_requires_parameters",
                    f"Rule class '{identifier}' constructor requires parameters: {names}",
                    "Rules must be instantiable without arguments; give every parameter a default",
                )
            )

    @staticmethod
    def _check_dependencies(identifier: str, rule_class: type, issues: _IssueCollector) -> None:
        for package in getattr(rule_class, "requires_packages", ()):
            if not _module_available(str(package)):
                issues.add(
                    _issue(
                        "missing_package",
                        f"Rule '{identifier}' requires package '{package}' which is not installed",
                        f"Install '{package}' in the environment running the review",
                        LogLevel.WARNING,
                    )
                )
        for extension in getattr(rule_class, "requires_extensions", ()):
            if not _module_available(str(extension)):
                issues.add(
                    _issue(
                        "missing_extension",
                        f"Rule '{identifier}' requires extension module '{extension}' which is not available",
                        f"Build or install the '{extension}' extension",
                        LogLevel.WARNING,
                    )
                )

    @staticmethod
    def _describe(identifier: str, rule_class: type, issues: _IssueCollector) -> RuleDescriptor | None:
        try:
            return describe_rule_class(rule_class, identifier)
        except ValueError as exc:
            issues.add(
                _issue(
                    "invalid_rule_metadata",
                    f"Rule '{identifier}' declares invalid metadata: {exc}",
                    "Use a RuleCategory member for the category",
                    LogLevel.WARNING,
                )
            )
            return None

    @staticmethod
    def _check_documentation(
        identifier: str,
        rule_class: type,
        descriptor: RuleDescriptor | None,
        issues: _IssueCollector,
    ) -> None:
        has_docstring = bool((rule_class.__doc__ or "").strip())
        has_description = descriptor is not None and descriptor.description != DEFAULT_DESCRIPTION
        if not has_docstring or not has_description:
            missing = "a docstring" if not has_docstring else "a description"
            issues.add(
                _issue(
                    "missing_documentation",
                    f"Rule class '{identifier}' lacks {missing}",
                    "Add a class docstring and a 'description' describing the rule's purpose",
                    LogLevel.WARNING,
                )
            )

    @staticmethod
    def _check_performance(identifier: str, rule_class: type, issues: _IssueCollector) -> None:
        try:
            source = inspect.getsource(rule_class)
        except (OSError, TypeError):
            return
        for pattern, suggestion in _PERFORMANCE_PATTERNS:
            if pattern.search(source):
                issues.add(
                    _issue(
                        "performance_concern",
                        f"Rule '{identifier}' may read whole files into memory",
                        suggestion,
                        LogLevel.WARNING,
                    )
                )
        if _UNCACHED_PARSE.search(source) and "ParseCache" not in source and "parse_cache" not in source:
            issues.add(
                _issue(
                    "performance_concern",
                    f"Rule '{identifier}' parses source without a cache",
                    "Reuse parsed trees through reviewkit.parsing.ParseCache",
                    LogLevel.WARNING,
                )
            )

    def validate_configuration(
        self,
        config: RunConfig | Mapping[str, object],
        *,
        base_dir: Path | None = None,
    ) -> ConfigurationReport:
        """Validate a run configuration structurally and every configured rule.

        Args:
            config: Typed configuration, or a raw mapping as read from TOML.
            base_dir: Directory relative scan paths of a raw mapping resolve against.

        Returns:
            Report whose ``is_valid`` is false iff a structural error exists.
        """
        issues = _IssueCollector()
        if isinstance(config, RunConfig):
            typed: RunConfig | None = config
            keys = ("scan_paths", "rules", "discovery", "reporting")
            raw_paths: object = list(config.scan_paths)
            raw_rules: object = list(config.rules)
            root = config.project_root or base_dir or Path.cwd()
        else:
            typed = None
            keys = tuple(str(key) for key in config)
            root = base_dir or Path.cwd()
            for required in ("scan_paths", "rules"):
                if required not in config:
                    issues.add(
                        _issue(
                            "missing_config_key",
                            f"Required configuration key '{required}' is missing",
                            f"Add a '{required}' list to the configuration",
                        )
                    )
            raw_paths = config.get("scan_paths", [])
            raw_rules = config.get("rules", [])

        self._check_scan_paths(raw_paths, root, issues)
        rule_names = self._check_rule_list(raw_rules, issues)

        rule_results: list[ValidationResult] = []
        seen: set[str] = set()
        for name in rule_names:
            if name in seen:
                issues.add(
                    _issue(
                        "duplicate_rule",
                        f"Rule '{name}' is configured more than once",
                        "Remove the duplicate entry",
                        LogLevel.WARNING,
                    )
                )
                continue
            seen.add(name)
            rule_results.append(self.validate_rule(name))

        if typed is None and not issues.errors:
            try:
                typed = config_from_mapping(cast("Mapping[str, object]", config), base_dir=root)
            except ConfigValidationError as exc:
                issues.add(
                    _issue("invalid_config_value", str(exc), "Correct the configuration value reported above")
                )

        report = ConfigurationReport(
            errors=tuple(issues.errors),
            warnings=tuple(issues.warnings),
            rule_results=tuple(rule_results),
            valid_rules=tuple(result.identifier for result in rule_results if result.is_valid),
            config=typed,
            config_keys=keys,
        )
        logger.info(
            "Configuration validation: %s",
            report.summary["message"],
            extra=structured_extra(
                component=LogComponent.VALIDATOR,
                counts={
                    "errors": len(report.errors),
                    "warnings": len(report.warnings),
                    "rules": len(rule_results),
                    "valid_rules": len(report.valid_rules),
                },
            ),
        )
        return report

    def detailed_report(
        self,
        config: RunConfig | Mapping[str, object],
        *,
        base_dir: Path | None = None,
    ) -> dict[str, JSONValue]:
        return self.validate_configuration(config, base_dir=base_dir).detailed_report()

    @staticmethod
    def _check_scan_paths(raw_paths: object, root: Path, issues: _IssueCollector) -> None:
        if not isinstance(raw_paths, list | tuple):
            issues.add(
                _issue("invalid_scan_paths", "'scan_paths' must be a list of directories", "Use a list of paths")
            )
            return
        if not raw_paths:
            issues.add(
                _issue("empty_scan_paths", "No scan paths are configured", "Add at least one directory to scan")
            )
            return
        for raw in cast("Sequence[object]", raw_paths):
            if not isinstance(raw, str | os.PathLike):
                issues.add(
                    _issue(
                        "invalid_scan_path_type",
                        f"Scan path {raw!r} is not a string",
                        "Scan paths must be strings",
                    )
                )
                continue
            path = Path(cast("str | os.PathLike[str]", raw))
            if not path.is_absolute():
                path = root / path
            if not path.exists():
                issues.add(
                    _issue(
                        "scan_path_not_found",
                        f"Scan path '{path}' does not exist",
                        "Create the directory or correct the path",
                    )
                )
            elif not path.is_dir():
                issues.add(
                    _issue(
                        "scan_path_not_directory",
                        f"Scan path '{path}' is not a directory",
                        "Scan paths must be directories",
                    )
                )
            elif not os.access(path, os.R_OK | os.X_OK):
                issues.add(
                    _issue(
                        "scan_path_not_readable",
                        f"Scan path '{path}' is not readable",
                        "Check the directory permissions",
                    )
                )

    @staticmethod
    def _check_rule_list(raw_rules: object, issues: _IssueCollector) -> list[str]:
        if not isinstance(raw_rules, list | tuple):
            issues.add(_issue("invalid_rules", "'rules' must be a list of rule identifiers", "Use a list"))
            return []
        if not raw_rules:
            issues.add(_issue("empty_rules", "No rules are configured", "Add at least one rule identifier"))
            return []
        names: list[str] = []
        for raw in cast("Sequence[object]", raw_rules):
            if not isinstance(raw, str) or not raw.strip():
                issues.add(
                    _issue(
                        "invalid_rule_type",
                        f"Rule entry {raw!r} is not a rule identifier",
                        "Rule entries must be non-empty strings",
                    )
                )
                continue
            names.append(raw.strip())
        if len(names) > MAX_RECOMMENDED_RULES:
            issues.add(
                _issue(
                    "too_many_rules",
                    f"{len(names)} rules are configured",
                    "Consider grouping related rules or optimizing rule performance",
                    LogLevel.WARNING,
                )
            )
        return names


__all__ = [
    "MAX_RECOMMENDED_RULES",
    "ConfigurationReport",
    "RuleValidator",
]
