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

"""Unit tests for the high-level review API."""

from __future__ import annotations

import json

import pytest

from reviewkit import RunAbortedError, run_review, validate_rules
from reviewkit.config import CACHE_DIRNAME
from reviewkit.core.model_types import RunState
from reviewkit.report import REPORT_KEYS
from tests.fixtures.projects import SampleProject, make_config, write_file

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _isolated_caches(clear_rule_caches: None) -> None:
    return None


def test_run_review_uses_config_file_and_writes_report(sample_project: SampleProject) -> None:
    _ = write_file(
        sample_project.root / "reviewkit.toml",
        'scan_paths = ["src"]\nrules = ["BareExceptRule"]\n\n[reporting]\noutput_path = "out/report.json"\n',
    )
    report = run_review(project_root=sample_project.root)

    assert report.state is RunState.COMPLETED
    assert [diagnostic.line for diagnostic in report.diagnostics] == [3]
    written = json.loads((sample_project.root / "out" / "report.json").read_text(encoding="utf-8"))
    assert tuple(written) == REPORT_KEYS
    assert written["state"] == "completed"
    assert (sample_project.root / CACHE_DIRNAME / "discovery.json").exists()


def test_overrides_replace_configured_values(sample_project: SampleProject) -> None:
    output = sample_project.root / "override.json"
    report = run_review(
        project_root=sample_project.root,
        config=make_config(sample_project.root, ["BareExceptRule"]),
        scan_paths=["src/pkg"],
        rules=["LineLengthRule"],
        output_path=output,
        use_cache=False,
    )

    assert [diagnostic.rule for diagnostic in report.diagnostics] == ["LineLengthRule"]
    assert report.statistics.scan_paths == [(sample_project.root.resolve() / "src" / "pkg").as_posix()]
    assert output.exists()
    assert not (sample_project.root / ".reviewkit_cache" / "discovery.json").exists()


def test_aborted_run_still_writes_report(sample_project: SampleProject) -> None:
    output = sample_project.root / "aborted.json"
    with pytest.raises(RunAbortedError):
        _ = run_review(
            project_root=sample_project.root,
            config=make_config(sample_project.root, ["LineLengthRule"]),
            scan_paths=["missing"],
            output_path=output,
        )
    written = json.loads(output.read_text(encoding="utf-8"))
    assert written["state"] == "aborted"
    assert written["summary"]["is_valid"] is False
    assert written["diagnostics"] == []


def test_progress_callback_reaches_total(sample_project: SampleProject) -> None:
    steps: list[int] = []
    _ = run_review(
        project_root=sample_project.root,
        config=make_config(sample_project.root, ["LineLengthRule"]),
        progress=lambda step, total, message: steps.append(step),
    )
    assert steps[0] == 0
    assert steps[-1] == 100


def test_validate_rules_reports_without_running(sample_project: SampleProject) -> None:
    report = validate_rules(
        project_root=sample_project.root,
        config=make_config(sample_project.root, ["LineLengthRule"]),
        rules=["LineLengthRule", "Foo.Bar"],
    )
    assert report.is_valid
    assert report.valid_rules == ("LineLengthRule",)
    assert report.invalid_rules == ("Foo.Bar",)
