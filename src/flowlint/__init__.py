"""FlowLint: static analysis for n8n workflow definitions."""

__version__ = "0.6.0"

from flowlint.config import FlowLintConfig, default_config, load_config, parse_config
from flowlint.errors import ConfigError, DocumentParseError, FlowLintError, ValidationError, ValidationIssue
from flowlint.models import Edge, EdgeOutcome, Finding, Graph, NodeRef, RuleContext, Severity
from flowlint.parser import WorkflowParser, parse_workflow
from flowlint.rules import Rule, run_all_rules
from flowlint.schemas.validator import WorkflowValidator
from flowlint.service import AnalysisResult, LintService

__all__ = [
    "AnalysisResult",
    "ConfigError",
    "DocumentParseError",
    "Edge",
    "EdgeOutcome",
    "Finding",
    "FlowLintConfig",
    "FlowLintError",
    "Graph",
    "LintService",
    "NodeRef",
    "Rule",
    "RuleContext",
    "Severity",
    "ValidationError",
    "ValidationIssue",
    "WorkflowParser",
    "WorkflowValidator",
    "__version__",
    "default_config",
    "load_config",
    "parse_config",
    "parse_workflow",
    "run_all_rules",
]
