"""Rules that judge each node on its own (plus its outgoing edges)."""

from __future__ import annotations

import json
import re
from typing import Any

from flowlint.config import ErrorHandlingConfig, LongRunningConfig, NamingConventionConfig
from flowlint.models.finding import Finding, RuleContext
from flowlint.models.graph import Graph, NodeRef
from flowlint.rules.base import NodeRule, Rule
from flowlint.rules.classifiers import (
    is_api_node,
    is_error_handler_node,
    is_error_prone_node,
    is_loop_node,
)
from flowlint.utils.values import EXPRESSION_MARKER, format_number, parse_number, read_number

DEPRECATED_NODES: dict[str, str] = {
    "n8n-nodes-base.splitInBatches": "Use Loop over items instead",
    "n8n-nodes-base.executeWorkflow": "Use Execute Workflow (Sub-Workflow) instead",
}

ITERATION_PATHS = ("maxIterations", "maxIteration", "limit", "options.maxIterations")
TIMEOUT_PATHS = ("timeout", "timeoutMs", "options.timeout")

_RETRY_AFTER = re.compile(r"retry[-_]?after|retryafter", re.IGNORECASE)


def resolve_retry_setting(node: NodeRef) -> Any:
    """Effective retry flag: options, then params root, then node flags."""
    params = node.params or {}
    options = params.get("options")
    candidates = [
        options.get("retryOnFail") if isinstance(options, dict) else None,
        params.get("retryOnFail"),
        node.flags.retry_on_fail if node.flags else None,
    ]
    return next((value for value in candidates if value is not None), None)


# ---------------------------------------------------------------------------
# R1 rate_limit_retry
# ---------------------------------------------------------------------------


def check_retry(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    if not is_api_node(node.type):
        return None

    retry = resolve_retry_setting(node)
    if retry is True:
        return None
    if isinstance(retry, str) and (EXPRESSION_MARKER in retry or retry.strip().lower() == "true"):
        return None

    return rule.finding(
        ctx,
        node.id,
        f"Node {node.label} is missing retry/backoff configuration",
        'In the node properties, enable "Retry on Fail" under Options.',
    )


# ---------------------------------------------------------------------------
# R2 error_handling
# ---------------------------------------------------------------------------


def check_continue_on_fail(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    cfg = rule.rule_config(ctx)
    if not isinstance(cfg, ErrorHandlingConfig) or not cfg.forbid_continue_on_fail:
        return None
    if not (node.flags and node.flags.continue_on_fail):
        return None

    return rule.finding(
        ctx,
        node.id,
        f"Node {node.label} has continueOnFail enabled (disable it and route errors explicitly)",
        'Open the node in n8n and disable "Continue On Fail" (Options > Continue On Fail). '
        "Route failures down an explicit error branch instead.",
    )


# ---------------------------------------------------------------------------
# R6 long_running
# ---------------------------------------------------------------------------


def check_long_running(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> list[Finding]:
    cfg = rule.rule_config(ctx)
    if not isinstance(cfg, LongRunningConfig) or not is_loop_node(node.type):
        return []

    findings = []
    iterations = read_number(node.params, ITERATION_PATHS)
    if not iterations or (cfg.max_iterations and iterations > cfg.max_iterations):
        shown = "unbounded" if iterations is None else format_number(iterations)
        findings.append(rule.finding(
            ctx,
            node.id,
            f"Node {node.label} allows {shown} iterations (limit {cfg.max_iterations}; set a lower cap)",
            f"Set Options > Max iterations to at most {cfg.max_iterations} "
            "or split the processing into smaller batches.",
        ))

    if cfg.timeout_ms:
        timeout = read_number(node.params, TIMEOUT_PATHS)
        if timeout and timeout > cfg.timeout_ms:
            findings.append(rule.finding(
                ctx,
                node.id,
                f"Node {node.label} uses timeout {format_number(timeout)}ms "
                f"(limit {cfg.timeout_ms}ms; shorten the timeout or break work apart)",
                f"Lower the timeout to at most {cfg.timeout_ms}ms "
                "or split the workflow so no single step blocks for too long.",
            ))
    return findings


# ---------------------------------------------------------------------------
# R10 naming_convention
# ---------------------------------------------------------------------------


def check_naming(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    cfg = rule.rule_config(ctx)
    generic = cfg.generic_names if isinstance(cfg, NamingConventionConfig) else []
    generic_names = {name.lower() for name in generic}

    if node.name and node.name.lower() not in generic_names:
        return None

    return rule.finding(
        ctx,
        node.id,
        f'Node {node.id} uses a generic name "{node.name or ""}" (rename it to describe the action)',
        'Rename the node to describe its purpose (e.g., "Check subscription status" instead of "IF") '
        "for easier reviews and debugging.",
    )


# ---------------------------------------------------------------------------
# R11 deprecated_nodes
# ---------------------------------------------------------------------------


def check_deprecated(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    hint = DEPRECATED_NODES.get(node.type)
    if not hint:
        return None

    return rule.finding(
        ctx,
        node.id,
        f"Node {node.label} uses deprecated type {node.type} (replace with {hint})",
        f"Replace this node with {hint} so future n8n upgrades don't break the workflow.",
    )


# ---------------------------------------------------------------------------
# R12 unhandled_error_path
# ---------------------------------------------------------------------------


def check_error_branch(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    if not is_error_prone_node(node.type):
        return None

    for edge in graph.outgoing(node.id):
        if edge.is_error:
            return None
        target = graph.get_node(edge.target)
        if target is not None and is_error_handler_node(target.type, target.name):
            return None

    return rule.finding(
        ctx,
        node.id,
        f"Node {node.label} has no error branch (add a red connector to handler)",
        "Add an error (red) branch to a Stop and Error or logging/alert node "
        "so failures do not disappear silently.",
    )


# ---------------------------------------------------------------------------
# R14 retry_after_compliance
# ---------------------------------------------------------------------------


def _has_static_wait(node: NodeRef) -> bool:
    wait = node.flags.wait_between_tries if node.flags else None
    if wait is None:
        return False
    if isinstance(wait, int | float) and not isinstance(wait, bool):
        return True
    return isinstance(wait, str) and EXPRESSION_MARKER not in wait and parse_number(wait) is not None


def _with_string_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _with_string_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_with_string_keys(v) for v in value]
    return value


def check_retry_after(node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
    if not is_api_node(node.type):
        return None

    retry = resolve_retry_setting(node)
    if not retry:
        return None
    if isinstance(retry, str) and EXPRESSION_MARKER in retry and retry.strip().lower() != "true":
        return None

    # A static wait is accepted; the editor does not allow expressions there.
    if _has_static_wait(node):
        return None

    if _RETRY_AFTER.search(json.dumps(_with_string_keys(node.to_dict()), default=str)):
        return None

    return rule.finding(
        ctx,
        node.id,
        f"Node {node.label} has retry logic but ignores Retry-After headers (429/503 responses)",
        "Add expression to parse Retry-After header: const retryAfter = $json.headers['retry-after']; "
        "const delay = retryAfter ? (parseInt(retryAfter) || new Date(retryAfter) - Date.now()) "
        ": Math.min(1000 * Math.pow(2, $execution.retryCount), 60000); "
        "This prevents API bans and respects server rate limits.",
    )


rate_limit_retry = NodeRule("R1", "rate_limit_retry", check_retry)
error_handling = NodeRule("R2", "error_handling", check_continue_on_fail)
long_running = NodeRule("R6", "long_running", check_long_running)
naming_convention = NodeRule("R10", "naming_convention", check_naming)
deprecated_nodes = NodeRule("R11", "deprecated_nodes", check_deprecated)
unhandled_error_path = NodeRule("R12", "unhandled_error_path", check_error_branch)
retry_after_compliance = NodeRule("R14", "retry_after_compliance", check_retry_after)
