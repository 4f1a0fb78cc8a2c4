"""Rule registry and the engine that runs it over one graph."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from flowlint.models.finding import Finding, RuleContext
from flowlint.models.graph import Graph
from flowlint.rules import graph_rules, node_rules, string_rules
from flowlint.rules.base import Rule, RuleFunction

logger = logging.getLogger(__name__)

BUILTIN_RULES: tuple[Rule, ...] = (
    node_rules.rate_limit_retry,
    node_rules.error_handling,
    graph_rules.idempotency,
    string_rules.secrets,
    graph_rules.dead_ends,
    node_rules.long_running,
    graph_rules.alert_log_enforcement,
    graph_rules.unused_data,
    string_rules.config_literals,
    node_rules.naming_convention,
    node_rules.deprecated_nodes,
    node_rules.unhandled_error_path,
    graph_rules.webhook_acknowledgment,
    node_rules.retry_after_compliance,
)


def _rule_name(rule: Rule | RuleFunction) -> str:
    return getattr(rule, "rule_id", None) or getattr(rule, "__name__", repr(rule))


def run_all_rules(
    graph: Graph,
    ctx: RuleContext,
    extra_rules: Sequence[Rule | RuleFunction] = (),
) -> list[Finding]:
    """Run the built-in rules, then *extra_rules*, and concatenate findings.

    Order is deterministic: rule registration order, then each rule's own
    order. A rule that raises aborts the run.
    """
    findings: list[Finding] = []
    for rule in (*BUILTIN_RULES, *extra_rules):
        produced = rule(graph, ctx)
        logger.debug(
            "rule_evaluated",
            extra={"rule": _rule_name(rule), "path": ctx.path, "findings": len(produced)},
        )
        findings.extend(produced)
    return findings
