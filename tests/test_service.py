"""Tests for LintService orchestration and file selection."""

import json

import pytest

from flowlint.config import FilesConfig, config_from_mapping, default_config
from flowlint.models import Finding, Severity
from flowlint.service import LintableFile, LintService, collect_files, read_files

DOCS = "https://docs.example/flowlint"


@pytest.fixture
def service():
    return LintService(default_config(), docs_base_url=DOCS)


class TestLintDocument:
    def test_valid_document(self, service, webhook_workflow):
        result = service.lint_document("flows/order.json", webhook_workflow)
        assert result.valid
        assert result.graph is not None
        assert "R13" in {f.rule for f in result.findings}
        assert all(f.path == "flows/order.json" for f in result.findings)

    def test_documentation_urls(self, service, webhook_workflow):
        result = service.lint_document("flows/order.json", webhook_workflow)
        assert all(f.documentation_url == f"{DOCS}/{f.rule}" for f in result.findings)

    def test_documentation_disabled(self, webhook_workflow):
        result = LintService(default_config(), docs_base_url="").lint_document("a.json", webhook_workflow)
        assert result.findings
        assert all(f.documentation_url is None for f in result.findings)

    def test_custom_rules_get_no_link(self, webhook_workflow):
        def custom(graph, ctx):
            return [Finding(rule="X1", severity=Severity.NIT, path=ctx.path, message="custom")]

        service = LintService(config_from_mapping({}), extra_rules=[custom], docs_base_url=DOCS)
        result = service.lint_document("a.json", webhook_workflow)
        assert [(f.rule, f.documentation_url) for f in result.findings] == [("X1", None)]

    def test_invalid_document(self, service):
        result = service.lint_document("broken.json", json.dumps({"connections": {}}))
        assert not result.valid
        assert result.graph is None
        assert result.findings == []
        assert "'nodes' is a required property" in result.errors[0].message

    def test_unparseable_document(self, service):
        result = service.lint_document("broken.json", "{")
        assert result.errors[0].path == "$"

    def test_rule_errors_propagate(self, webhook_workflow):
        def broken(graph, ctx):
            raise ValueError("boom")

        service = LintService(default_config(), extra_rules=[broken])
        with pytest.raises(ValueError, match="boom"):
            service.lint_document("a.json", webhook_workflow)


class TestLintFiles:
    def test_parallel_keeps_input_order(self, webhook_workflow):
        files = [LintableFile(f"flow-{i}.json", webhook_workflow) for i in range(6)]
        files.insert(3, LintableFile("bad.json", "{"))
        service = LintService(default_config(), max_workers=4)
        results = service.lint_files(files)
        assert [r.file.path for r in results] == [f.path for f in files]
        assert [r.valid for r in results].count(False) == 1

    def test_parallel_matches_sequential(self, webhook_workflow):
        files = [LintableFile(f"flow-{i}.json", webhook_workflow) for i in range(4)]
        sequential = LintService(default_config(), max_workers=1).lint_files(files)
        parallel = LintService(default_config(), max_workers=3).lint_files(files)
        assert [r.findings for r in sequential] == [r.findings for r in parallel]

    def test_summarize(self, service, webhook_workflow):
        results = service.lint_files([
            LintableFile("a.json", webhook_workflow),
            LintableFile("b.json", "{"),
        ])
        summary = service.summarize(results)
        findings = results[0].findings
        assert summary.total_files == 2
        assert summary.errors == 1
        assert summary.total_findings == len(findings)
        assert summary.must == sum(1 for f in findings if f.severity == Severity.MUST)
        assert summary.has_blocking_issues
        assert summary.count_at_or_above(Severity.NIT) == summary.total_findings


class TestCollectFiles:
    def test_default_patterns(self, tmp_path):
        for rel in [
            "workflows/orders.json",
            "flows/billing.n8n.yaml",
            "node_modules/pkg/index.json",
            "package.json",
            "sub/fixture.spec.json",
            "root.spec.json",
            "README.md",
        ]:
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("{}")

        found = collect_files(tmp_path, default_config().files)
        assert [p.relative_to(tmp_path).as_posix() for p in found] == [
            "flows/billing.n8n.yaml",
            "workflows/orders.json",
        ]

    def test_custom_patterns(self, tmp_path):
        (tmp_path / "a.json").write_text("{}")
        (tmp_path / "b.json").write_text("{}")
        files_config = FilesConfig(include=["*.json"], ignore=["b.json"])
        assert collect_files(tmp_path, files_config) == [tmp_path / "a.json"]

    def test_read_files(self, tmp_path):
        (tmp_path / "a.json").write_text('{"nodes": []}', encoding="utf-8")
        files = read_files([tmp_path / "a.json"])
        assert files == [LintableFile(str(tmp_path / "a.json"), '{"nodes": []}')]
