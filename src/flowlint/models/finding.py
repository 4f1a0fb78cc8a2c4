"""Finding and severity model shared by rules and reporters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flowlint.config import FlowLintConfig


class Severity(StrEnum):
    """Finding severity: ``must`` blocks, ``should`` warns, ``nit`` informs."""

    MUST = "must"
    SHOULD = "should"
    NIT = "nit"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.MUST: 0, Severity.SHOULD: 1, Severity.NIT: 2}


@dataclass(frozen=True)
class Finding:
    """One reported defect."""

    rule: str
    severity: Severity
    path: str
    message: str
    raw_details: str | None = None
    node_id: str | None = None
    line: int | None = None
    documentation_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the camelCase keys reporters expect."""
        data: dict[str, Any] = {
            "rule": self.rule,
            "severity": self.severity.value,
            "path": self.path,
            "message": self.message,
        }
        if self.raw_details is not None:
            data["raw_details"] = self.raw_details
        if self.node_id is not None:
            data["nodeId"] = self.node_id
        if self.line is not None:
            data["line"] = self.line
        if self.documentation_url is not None:
            data["documentationUrl"] = self.documentation_url
        return data


@dataclass(frozen=True)
class FindingsSummary:
    must: int = 0
    should: int = 0
    nit: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"must": self.must, "should": self.should, "nit": self.nit, "total": self.total}


def severity_order(finding: Finding) -> int:
    """Sort key: must < should < nit."""
    return finding.severity.rank


def sort_findings_by_severity(findings: Iterable[Finding]) -> list[Finding]:
    """Stable sort; rule order is kept within a severity."""
    return sorted(findings, key=severity_order)


def count_findings_by_severity(findings: Iterable[Finding]) -> FindingsSummary:
    counts = {Severity.MUST: 0, Severity.SHOULD: 0, Severity.NIT: 0}
    for finding in findings:
        counts[finding.severity] += 1
    return FindingsSummary(
        must=counts[Severity.MUST],
        should=counts[Severity.SHOULD],
        nit=counts[Severity.NIT],
        total=sum(counts.values()),
    )


@dataclass(frozen=True)
class RuleContext:
    """Read-only inputs shared by every rule for one document."""

    path: str
    config: FlowLintConfig
    node_lines: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "node_lines", MappingProxyType(dict(self.node_lines)))

    def line_for(self, node_id: str) -> int | None:
        return self.node_lines.get(node_id)
