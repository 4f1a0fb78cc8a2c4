"""Workflow document parsing."""

from flowlint.parser.n8n import (
    WorkflowParser,
    load_document,
    parse_workflow,
    recover_node_lines,
    resolve_edge_outcome,
)

__all__ = [
    "WorkflowParser",
    "load_document",
    "parse_workflow",
    "recover_node_lines",
    "resolve_edge_outcome",
]
