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

"""Unit tests for rule contract and configuration validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from reviewkit.config import RunConfig
from reviewkit.core.model_types import LogLevel
from reviewkit.rules.validator import MAX_RECOMMENDED_RULES, RuleValidator
from tests.fixtures.projects import SampleProject, make_config

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = [pytest.mark.unit, pytest.mark.rules]

STUBS = "tests.fixtures.stubs"


@pytest.fixture
def validator(clear_rule_caches: None) -> RuleValidator:
    return RuleValidator()


@pytest.mark.parametrize(
    "identifier",
    [
        "LineLengthRule",
        "BareExceptRule",
        f"{STUBS}:RecordingRule",
        f"{STUBS}:StructuralRule",
        f"{STUBS}.MappingRule",
    ],
)
def test_conforming_rules_are_valid(validator: RuleValidator, identifier: str) -> None:
    result = validator.validate_rule(identifier)
    assert result.is_valid, result.error_types()
    assert result.warnings == ()
    assert result.rule_class is not None
    assert result.descriptor is not None
    assert [issue.type for issue in result.info] == ["class_info"]


@pytest.mark.parametrize(
    ("stub", "expected"),
    [
        ("ConstructorParamRule", ["constructor_requires_parameters"]),
        ("AbstractStubRule", ["class_not_instantiable"]),
        ("NoCheckRule", ["interface_not_implemented", "missing_check_method"]),
        ("StaticCheckRule", ["check_method_not_public"]),
        ("BadSignatureRule", ["invalid_check_method_parameters"]),
        ("BadAnnotationRule", ["invalid_check_method_parameter_type", "invalid_check_method_return_type"]),
    ],
)
def test_contract_violations_are_reported_as_errors(validator: RuleValidator, stub: str, expected: list[str]) -> None:
    result = validator.validate_rule(f"{STUBS}:{stub}")
    assert not result.is_valid
    assert result.error_types() == expected
    assert all(issue.severity is LogLevel.ERROR for issue in result.errors)
    assert all(issue.suggestion for issue in result.errors)


def test_class_without_contract_members_lists_what_is_missing(validator: RuleValidator) -> None:
    result = validator.validate_rule(f"{STUBS}:NotARule")
    assert result.error_types()[0] == "interface_not_implemented"
    assert "check" in result.errors[0].message
    assert "description" in result.errors[0].message


@pytest.mark.parametrize(
    ("stub", "warning"),
    [
        ("OddParameterNameRule", "non_standard_parameter_name"),
        ("MissingPackageRule", "missing_package"),
        ("ReadsWholeFileRule", "performance_concern"),
        ("UndocumentedRule", "missing_documentation"),
    ],
)
def test_soft_problems_are_warnings(validator: RuleValidator, stub: str, warning: str) -> None:
    result = validator.validate_rule(f"{STUBS}:{stub}")
    assert result.is_valid
    assert warning in result.warning_types()


@pytest.mark.parametrize("identifier", ["Foo.Bar", "NoSuchRule", f"{STUBS}:Missing", "", ".relative:Thing"])
def test_unresolvable_identifiers_never_raise(validator: RuleValidator, identifier: str) -> None:
    result = validator.validate_rule(identifier)
    assert result.error_types() == ["class_not_found"]
    assert result.errors[0].suggestion
    assert result.rule_class is None
    assert result.descriptor is None


@pytest.mark.parametrize(
    ("module_name", "source"),
    [
        ("reviewkit_plugin_raises", "raise RuntimeError('plugin setup failed')\n"),
        ("reviewkit_plugin_syntax", "def broken(:\n"),
    ],
)
def test_plugin_import_failures_become_class_not_found(
    validator: RuleValidator,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    module_name: str,
    source: str,
) -> None:
    _ = (tmp_path / f"{module_name}.py").write_text(source, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))

    result = validator.validate_rule(f"{module_name}:PluginRule")

    assert result.error_types() == ["class_not_found"]
    assert "could not be imported" in result.errors[0].message


def test_misspelt_builtin_gets_a_did_you_mean_hint(validator: RuleValidator) -> None:
    result = validator.validate_rule("BareExcepRule")
    assert result.errors[0].suggestion == "Did you mean: BareExceptRule?"


def test_custom_resolver_is_used() -> None:
    from tests.fixtures.stubs import RecordingRule

    seen: list[str] = []

    def resolver(identifier: str) -> type:
        seen.append(identifier)
        return RecordingRule

    result = RuleValidator(resolver).validate_rule("anything")
    assert result.is_valid
    assert seen == ["anything"]


def test_typed_configuration_splits_valid_and_invalid_rules(
    validator: RuleValidator,
    sample_project: SampleProject,
) -> None:
    config = make_config(
        sample_project.root,
        ["LineLengthRule", f"{STUBS}:BadSignatureRule", "Foo.Bar", "LineLengthRule"],
    )
    report = validator.validate_configuration(config)

    assert report.is_valid
    assert report.valid_rules == ("LineLengthRule",)
    assert report.invalid_rules == (f"{STUBS}:BadSignatureRule", "Foo.Bar")
    assert [issue.type for issue in report.warnings] == ["duplicate_rule"]
    assert report.summary["severity"] == "error"
    assert report.summary["is_valid"] is True
    assert any("failed validation" in item for item in report.recommendations)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ({"rules": ["LineLengthRule"]}, ["missing_config_key", "empty_scan_paths"]),
        ({"scan_paths": "src", "rules": ["LineLengthRule"]}, ["invalid_scan_paths"]),
        ({"scan_paths": ["src"], "rules": []}, ["empty_rules"]),
        ({"scan_paths": ["src"], "rules": "LineLengthRule"}, ["invalid_rules"]),
        ({"scan_paths": ["src"], "rules": ["LineLengthRule", 3]}, ["invalid_rule_type"]),
        ({"scan_paths": [7], "rules": ["LineLengthRule"]}, ["invalid_scan_path_type"]),
        ({"scan_paths": ["missing"], "rules": ["LineLengthRule"]}, ["scan_path_not_found"]),
        ({"scan_paths": ["src/pkg/clean.py"], "rules": ["LineLengthRule"]}, ["scan_path_not_directory"]),
    ],
)
def test_structural_problems_are_configuration_errors(
    validator: RuleValidator,
    sample_project: SampleProject,
    raw: dict[str, object],
    expected: list[str],
) -> None:
    report = validator.validate_configuration(raw, base_dir=sample_project.root)
    assert not report.is_valid
    assert [issue.type for issue in report.errors] == expected
    assert report.summary["is_valid"] is False
    assert report.recommendations[0] == "Fix all configuration errors before running the review"


def test_raw_mapping_is_converted_to_typed_config(validator: RuleValidator, sample_project: SampleProject) -> None:
    raw: dict[str, object] = {"scan_paths": ["src"], "rules": ["LineLengthRule"], "discovery": {"cache_ttl": 5}}
    report = validator.validate_configuration(raw, base_dir=sample_project.root)

    assert report.is_valid
    assert isinstance(report.config, RunConfig)
    assert report.config.scan_paths == [sample_project.src.resolve()]
    assert report.config.discovery.cache_ttl == pytest.approx(5.0)
    assert report.config_keys == ("scan_paths", "rules", "discovery")


def test_invalid_nested_value_is_reported(validator: RuleValidator, sample_project: SampleProject) -> None:
    raw: dict[str, object] = {
        "scan_paths": ["src"],
        "rules": ["LineLengthRule"],
        "discovery": {"max_file_size": -1},
    }
    report = validator.validate_configuration(raw, base_dir=sample_project.root)
    assert [issue.type for issue in report.errors] == ["invalid_config_value"]
    assert report.config is None


def test_too_many_rules_is_a_warning(validator: RuleValidator, sample_project: SampleProject) -> None:
    rules = [f"{STUBS}:RecordingRule"] + [f"Missing{index}" for index in range(MAX_RECOMMENDED_RULES)]
    report = validator.validate_configuration(make_config(sample_project.root, rules))
    assert report.is_valid
    assert "too_many_rules" in [issue.type for issue in report.warnings]
    assert report.valid_rules == (f"{STUBS}:RecordingRule",)


def test_detailed_report_shape(validator: RuleValidator, sample_project: SampleProject) -> None:
    detailed = validator.detailed_report(make_config(sample_project.root, ["LineLengthRule", "Foo.Bar"]))

    assert set(detailed) == {"validation", "config_analysis", "rule_analysis", "recommendations"}
    analysis = detailed["config_analysis"]
    assert isinstance(analysis, dict)
    assert analysis["scan_paths_count"] == 1
    assert analysis["has_discovery_config"] is True
    rules = detailed["rule_analysis"]
    assert isinstance(rules, dict)
    assert rules["valid_rule_identifiers"] == ["LineLengthRule"]
    assert rules["invalid_rule_identifiers"] == ["Foo.Bar"]
