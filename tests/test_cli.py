"""Tests for the flowlint command line."""

import json

import pytest

from flowlint.cli import EXIT_FINDINGS, EXIT_INVALID, EXIT_OK, exit_code_for, main
from flowlint.models import Severity
from flowlint.service import AnalysisSummary


@pytest.fixture
def workflow_file(tmp_path, webhook_workflow):
    path = tmp_path / "workflows" / "order.json"
    path.parent.mkdir()
    path.write_text(webhook_workflow, encoding="utf-8")
    return path


class TestExitCodes:
    @pytest.mark.parametrize(
        "summary,fail_on,expected",
        [
            (AnalysisSummary(must=1), "must", EXIT_FINDINGS),
            (AnalysisSummary(should=2), "must", EXIT_OK),
            (AnalysisSummary(should=2), "should", EXIT_FINDINGS),
            (AnalysisSummary(nit=1), "should", EXIT_OK),
            (AnalysisSummary(nit=1), "nit", EXIT_FINDINGS),
            (AnalysisSummary(must=3), "never", EXIT_OK),
            (AnalysisSummary(errors=1), "must", EXIT_INVALID),
            (AnalysisSummary(must=1, errors=1), "must", EXIT_FINDINGS),
        ],
    )
    def test_exit_code_for(self, summary, fail_on, expected):
        assert exit_code_for(summary, fail_on) == expected

    def test_threshold_counts(self):
        summary = AnalysisSummary(must=1, should=2, nit=4)
        assert summary.count_at_or_above(Severity.MUST) == 1
        assert summary.count_at_or_above(Severity.SHOULD) == 3
        assert summary.count_at_or_above(Severity.NIT) == 7


class TestCheckCommand:
    def test_blocking_findings(self, workflow_file, capsys):
        code = main(["check", str(workflow_file)])
        out = capsys.readouterr().out
        assert code == EXIT_FINDINGS
        assert str(workflow_file) in out
        assert "R13" in out

    def test_fail_on_never(self, workflow_file):
        assert main(["check", str(workflow_file), "--fail-on", "never"]) == EXIT_OK

    def test_json_format(self, workflow_file, capsys):
        main(["check", str(workflow_file), "--format", "json"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["summary"]["total_files"] == 1
        assert payload["files"][0]["path"] == str(workflow_file)
        assert payload["files"][0]["findings"]

    def test_directory_argument(self, workflow_file, capsys):
        code = main(["check", str(workflow_file.parent.parent)])
        assert code == EXIT_FINDINGS
        assert "1 file(s) checked" in capsys.readouterr().out

    def test_config_file(self, workflow_file, tmp_path, capsys):
        config_path = tmp_path / "lint.yml"
        config_path.write_text(
            "rules:\n"
            "  rate_limit_retry:\n    enabled: false\n"
            "  unhandled_error_path:\n    enabled: false\n"
            "  webhook_acknowledgment:\n    enabled: false\n",
            encoding="utf-8",
        )
        code = main(["check", str(workflow_file), "--config", str(config_path)])
        assert code == EXIT_OK
        assert "0 must" in capsys.readouterr().out

    def test_invalid_workflow(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text('{"connections": {}}', encoding="utf-8")
        assert main(["check", str(path)]) == EXIT_INVALID
        assert "invalid workflow" in capsys.readouterr().out

    def test_missing_path(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "missing.json")]) == EXIT_INVALID
        assert "cannot read" in capsys.readouterr().err

    def test_bad_config(self, workflow_file, tmp_path, capsys):
        config_path = tmp_path / "lint.yml"
        config_path.write_text("- not\n- a mapping\n", encoding="utf-8")
        assert main(["check", str(workflow_file), "--config", str(config_path)]) == EXIT_INVALID
        assert "Error:" in capsys.readouterr().err

    def test_parallel_workers(self, workflow_file, capsys):
        assert main(["check", str(workflow_file), "--workers", "2"]) == EXIT_FINDINGS


class TestRulesCommand:
    def test_text(self, capsys):
        assert main(["rules"]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 14
        assert lines[0].startswith("R1 ")

    def test_json(self, capsys):
        main(["rules", "--format", "json"])
        rules = json.loads(capsys.readouterr().out)
        assert rules[12]["id"] == "R13"
        assert rules[12]["severity"] == "must"


def test_no_command_prints_help(capsys):
    assert main([]) == EXIT_INVALID
    assert "usage: flowlint" in capsys.readouterr().out
