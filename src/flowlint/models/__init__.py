"""Data model shared by the parser, the rule engine and reporters."""

from flowlint.models.finding import (
    Finding,
    FindingsSummary,
    RuleContext,
    Severity,
    count_findings_by_severity,
    severity_order,
    sort_findings_by_severity,
)
from flowlint.models.graph import Edge, EdgeOutcome, Graph, GraphMeta, JSONValue, NodeFlags, NodeRef

__all__ = [
    "Edge",
    "EdgeOutcome",
    "Finding",
    "FindingsSummary",
    "Graph",
    "GraphMeta",
    "JSONValue",
    "NodeFlags",
    "NodeRef",
    "RuleContext",
    "Severity",
    "count_findings_by_severity",
    "severity_order",
    "sort_findings_by_severity",
]
