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

"""CLI tests for the ``reviewkit`` command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from reviewkit import __version__
from reviewkit.cli import main
from tests.fixtures.projects import SampleProject, write_file

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.cli


@pytest.fixture(autouse=True)
def _isolated_caches(clear_rule_caches: None) -> None:
    return None


def _configure(project: SampleProject, rules: list[str], *, scan_paths: tuple[str, ...] = ("src",)) -> Path:
    joined_paths = ", ".join(f'"{path}"' for path in scan_paths)
    joined_rules = ", ".join(f'"{rule}"' for rule in rules)
    return write_file(
        project.root / "reviewkit.toml",
        f"scan_paths = [{joined_paths}]\nrules = [{joined_rules}]\n",
    )


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"reviewkit {__version__}"


def test_missing_command_is_an_error() -> None:
    with pytest.raises(SystemExit):
        _ = main([])


def test_run_reports_diagnostics_and_exits_zero(
    sample_project: SampleProject,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _ = _configure(sample_project, ["LineLengthRule"])
    exit_code = main(["run", "--project-root", str(sample_project.root)])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "wide.py:1: [info] LineLengthRule:" in out
    assert "1 diagnostic(s) in 3 file(s)" in out


def test_run_fail_on_threshold(sample_project: SampleProject) -> None:
    _ = _configure(sample_project, ["BareExceptRule"])
    root = str(sample_project.root)
    assert main(["run", "--project-root", root]) == 0
    assert main(["run", "--project-root", root, "--fail-on", "warnings"]) == 1
    assert main(["run", "--project-root", root, "--fail-on", "never", "--no-cache"]) == 0


def test_run_json_output_and_rule_override(
    sample_project: SampleProject,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _ = _configure(sample_project, ["LineLengthRule"])
    exit_code = main([
        "run",
        "--project-root",
        str(sample_project.root),
        "--rule",
        "BareExceptRule",
        "--format",
        "json",
        str(sample_project.src / "pkg"),
    ])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["state"] == "completed"
    assert [item["rule"] for item in payload["diagnostics"]] == ["BareExceptRule"]


def test_run_aborts_on_invalid_configuration(
    sample_project: SampleProject,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _ = _configure(sample_project, ["LineLengthRule"], scan_paths=("missing",))
    output = sample_project.root / "report.json"
    exit_code = main(["run", "--project-root", str(sample_project.root), "--output", str(output)])

    assert exit_code == 2
    assert "does not exist" in capsys.readouterr().err
    assert json.loads(output.read_text(encoding="utf-8"))["state"] == "aborted"


def test_run_rejects_malformed_config(sample_project: SampleProject, capsys: pytest.CaptureFixture[str]) -> None:
    _ = write_file(sample_project.root / "reviewkit.toml", "config_version = 99\n")
    assert main(["run", "--project-root", str(sample_project.root)]) == 2
    assert "Invalid reviewkit configuration" in capsys.readouterr().err


def test_validate_exit_codes(sample_project: SampleProject, capsys: pytest.CaptureFixture[str]) -> None:
    root = str(sample_project.root)
    _ = _configure(sample_project, ["LineLengthRule"])
    assert main(["validate", "--project-root", root]) == 0
    assert "Configuration is valid" in capsys.readouterr().out

    assert main(["validate", "--project-root", root, "--rule", "Foo.Bar"]) == 1
    out = capsys.readouterr().out
    assert "Foo.Bar: invalid" in out
    assert "class_not_found" in out

    _ = _configure(sample_project, ["LineLengthRule"], scan_paths=("missing",))
    assert main(["validate", "--project-root", root]) == 2


def test_validate_json_report(sample_project: SampleProject, capsys: pytest.CaptureFixture[str]) -> None:
    _ = _configure(sample_project, ["LineLengthRule", "tests.fixtures.stubs:UndocumentedRule"])
    assert main(["validate", "--project-root", str(sample_project.root), "--format", "json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert set(payload) == {"validation", "config_analysis", "rule_analysis", "recommendations"}
    assert payload["rule_analysis"]["valid_rules"] == 2
    assert "Review and address validation warnings" in payload["recommendations"]


def test_rules_listing_and_filters(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["rules"]) == 0
    out = capsys.readouterr().out
    assert "BareExceptRule (best-practice, warning, builtin)" in out
    assert "LineLengthRule (style, info, builtin)" in out

    assert main(["rules", "--category", "style", "--format", "json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [item["identifier"] for item in payload["rules"]] == ["LineLengthRule"]
    assert payload["rules"][0]["origin"] == "builtin"
    assert payload["statistics"]["total_rules"] == 1

    assert main(["rules", "--tag", "nothing-matches"]) == 0
    assert "No rules match" in capsys.readouterr().out


def test_cache_stats_and_clear(sample_project: SampleProject, capsys: pytest.CaptureFixture[str]) -> None:
    root = str(sample_project.root)
    _ = _configure(sample_project, ["LineLengthRule"])
    assert main(["run", "--project-root", root]) == 0
    _ = capsys.readouterr()

    assert main(["cache", "stats", "--project-root", root]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["entries"] == 1

    assert main(["cache", "clear", "--project-root", root]) == 0
    assert "Cleared 1 cached listing(s)" in capsys.readouterr().out
    assert not (sample_project.root / ".reviewkit_cache" / "discovery.json").exists()
