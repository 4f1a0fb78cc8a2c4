"""LintService: parse, validate, and run rules over workflow documents.

Usage::

    service = LintService(load_config())
    results = service.lint_files(read_files(collect_files(Path("."), config.files)))
    summary = service.summarize(results)
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from flowlint.config import FilesConfig, FlowLintConfig, default_config
from flowlint.errors import ValidationError, ValidationIssue
from flowlint.logging_config import bind_lint_context, clear_lint_context
from flowlint.models.finding import Finding, RuleContext, Severity, count_findings_by_severity
from flowlint.models.graph import Graph
from flowlint.parser import WorkflowParser
from flowlint.rules import RULES_METADATA, Rule, RuleFunction, run_all_rules
from flowlint.schemas.validator import WorkflowValidator
from flowlint.settings import settings

logger = logging.getLogger(__name__)

_BUILTIN_RULE_IDS = frozenset(meta.id for meta in RULES_METADATA)


# ---------------------------------------------------------------------------
# Result data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LintableFile:
    """A document to lint: display path plus raw text."""

    path: str
    content: str


@dataclass
class AnalysisResult:
    """Outcome for one document: findings, or the validation issues that stopped it."""

    file: LintableFile
    graph: Graph | None = None
    findings: list[Finding] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.file.path,
            "valid": self.valid,
            "findings": [f.to_dict() for f in self.findings],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class AnalysisSummary:
    total_files: int = 0
    total_findings: int = 0
    must: int = 0
    should: int = 0
    nit: int = 0
    errors: int = 0

    @property
    def has_blocking_issues(self) -> bool:
        return self.must > 0

    def count_at_or_above(self, threshold: Severity) -> int:
        """Number of findings with severity *threshold* or worse."""
        counts = {Severity.MUST: self.must, Severity.SHOULD: self.should, Severity.NIT: self.nit}
        return sum(n for sev, n in counts.items() if sev.rank <= threshold.rank)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_findings": self.total_findings,
            "by_severity": {"must": self.must, "should": self.should, "nit": self.nit},
            "errors": self.errors,
            "has_blocking_issues": self.has_blocking_issues,
        }


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------


def _is_ignored(relative: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        # "**/" also matches at the root
        if pattern.startswith("**/") and fnmatch.fnmatch(relative, pattern[3:]):
            return True
    return False


def collect_files(root: Path, files_config: FilesConfig) -> list[Path]:
    """Files under *root* matching an include glob and no ignore glob.

    Paths are returned sorted and de-duplicated.
    """
    root = Path(root)
    selected: set[Path] = set()
    for pattern in files_config.include:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if not _is_ignored(relative, files_config.ignore):
                selected.add(path)
    return sorted(selected)


def read_files(paths: Iterable[Path]) -> list[LintableFile]:
    return [LintableFile(path=str(p), content=Path(p).read_text(encoding="utf-8")) for p in paths]


# ---------------------------------------------------------------------------
# Main service
# ---------------------------------------------------------------------------


class LintService:
    """Lints workflow documents against one configuration.

    Documents are independent, so :meth:`lint_files` may analyze them in a
    thread pool. The config, the compiled validator, and the rules are
    shared read-only.
    """

    def __init__(
        self,
        config: FlowLintConfig | None = None,
        validator: WorkflowValidator | None = None,
        extra_rules: Sequence[Rule | RuleFunction] = (),
        max_workers: int | None = None,
        docs_base_url: str | None = None,
    ) -> None:
        self.config = config or default_config()
        self.parser = WorkflowParser(validator)
        self.extra_rules = tuple(extra_rules)
        self.max_workers = max_workers if max_workers is not None else settings.max_workers
        self.docs_base_url = (settings.docs_base_url if docs_base_url is None else docs_base_url).rstrip("/")

    # ----- public API -----

    def lint_document(self, path: str, content: str) -> AnalysisResult:
        """Parse, validate, and lint one document.

        Validation failures are returned as ``errors``; rule exceptions
        propagate.
        """
        file = LintableFile(path=path, content=content)
        bind_lint_context(path)
        try:
            try:
                graph = self.parser.parse(content)
            except ValidationError as exc:
                logger.info("workflow_invalid", extra={"issues": len(exc.errors)})
                return AnalysisResult(file=file, errors=list(exc.errors))

            ctx = RuleContext(path=path, config=self.config, node_lines=graph.meta.node_lines)
            findings = self._with_documentation(run_all_rules(graph, ctx, self.extra_rules))
            logger.info("workflow_linted", extra={"nodes": len(graph.nodes), "findings": len(findings)})
            return AnalysisResult(file=file, graph=graph, findings=findings)
        finally:
            clear_lint_context()

    def lint_files(self, files: Sequence[LintableFile]) -> list[AnalysisResult]:
        """Lint every file; results are in input order."""
        if self.max_workers <= 1 or len(files) <= 1:
            return [self.lint_document(f.path, f.content) for f in files]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(lambda f: self.lint_document(f.path, f.content), files))

    def summarize(self, results: Sequence[AnalysisResult]) -> AnalysisSummary:
        findings = [f for result in results for f in result.findings]
        counts = count_findings_by_severity(findings)
        return AnalysisSummary(
            total_files=len(results),
            total_findings=counts.total,
            must=counts.must,
            should=counts.should,
            nit=counts.nit,
            errors=sum(1 for result in results if not result.valid),
        )

    # ----- internals -----

    def _with_documentation(self, findings: list[Finding]) -> list[Finding]:
        if not self.docs_base_url:
            return findings
        return [
            replace(f, documentation_url=f"{self.docs_base_url}/{f.rule}")
            if f.rule in _BUILTIN_RULE_IDS and f.documentation_url is None
            else f
            for f in findings
        ]
