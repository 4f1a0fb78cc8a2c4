"""Rules that need reachability over the whole graph."""

from __future__ import annotations

from collections.abc import Iterator

from flowlint.config import DEFAULT_HEAVY_NODE_TYPES, IdempotencyConfig, WebhookAcknowledgmentConfig
from flowlint.models.finding import Finding, RuleContext
from flowlint.models.graph import Graph
from flowlint.rules.base import Rule
from flowlint.rules.classifiers import (
    is_heavy_node,
    is_ingress_node,
    is_meaningful_consumer,
    is_mutation_node,
    is_respond_node,
    is_terminal_node,
    is_webhook_trigger,
)
from flowlint.rules.traversal import downstream_closure, is_error_path_handled, upstream_closure
from flowlint.utils.values import contains_candidate


class IdempotencyRule(Rule):
    """R3: mutations reachable from an ingress need an idempotency key upstream."""

    rule_id = "R3"
    config_key = "idempotency"

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        cfg = self.rule_config(ctx)
        candidates = cfg.key_field_candidates if isinstance(cfg, IdempotencyConfig) else []

        if not any(is_ingress_node(node.type) for node in graph.nodes):
            return

        for node in graph.nodes:
            if not is_mutation_node(node.type):
                continue

            upstream = upstream_closure(graph, node.id)
            has_guard = any(
                contains_candidate(candidate.params, candidates)
                for candidate in graph.nodes
                if candidate.id in upstream
            )
            if has_guard:
                continue

            yield self.finding(
                ctx,
                node.id,
                f'The mutation path ending at "{node.label}" appears to be missing an idempotency guard.',
                "Ensure one of the upstream nodes or the mutation node itself uses an idempotency key, "
                f"such as one of: {', '.join(candidates)}",
            )


class DeadEndRule(Rule):
    """R5: non-terminal nodes without outgoing edges."""

    rule_id = "R5"
    config_key = "dead_ends"

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        if len(graph.nodes) <= 1:
            return

        for node in graph.nodes:
            if graph.outgoing(node.id) or is_terminal_node(node.type, node.name):
                continue
            yield self.finding(
                ctx,
                node.id,
                f"Node {node.label} has no outgoing connections (either wire it up or remove it)",
                "Either remove this node as dead code or connect it to the next/safe step "
                "so the workflow can continue.",
            )


class AlertLogRule(Rule):
    """R7: error branches must reach a notification or handler before rejoining."""

    rule_id = "R7"
    config_key = "alert_log_enforcement"

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        for edge in graph.edges:
            if not edge.is_error or is_error_path_handled(graph, edge.target):
                continue

            source = graph.get_node(edge.source)
            label = source.label if source is not None else edge.source
            yield self.finding(
                ctx,
                edge.source,
                f"Error path from node {label} has no log/alert before rejoining (add notification node)",
                "Add a Slack/Email/Log node on the error branch before it rejoins the main flow "
                "so failures leave an audit trail.",
            )


class UnusedDataRule(Rule):
    """R8: output that never reaches a node with an external effect."""

    rule_id = "R8"
    config_key = "unused_data"

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        for node in graph.nodes:
            # Nodes without successors belong to the dead-end rule.
            if is_terminal_node(node.type, node.name) or not graph.outgoing(node.id):
                continue

            downstream = downstream_closure(graph, node.id)
            downstream.discard(node.id)
            leads_to_consumer = any(
                is_meaningful_consumer(candidate)
                for candidate in graph.nodes
                if candidate.id in downstream
            )
            if leads_to_consumer:
                continue

            yield self.finding(
                ctx,
                node.id,
                f'Node "{node.label}" produces data that never reaches any consumer',
                "Wire this branch into a consumer (DB/API/response) or remove it, "
                "otherwise the data produced here is never used.",
            )


class WebhookAcknowledgmentRule(Rule):
    """R13: a webhook must be acknowledged before heavy work starts."""

    rule_id = "R13"
    config_key = "webhook_acknowledgment"

    def heavy_node_types(self, ctx: RuleContext) -> list[str]:
        cfg = self.rule_config(ctx)
        if isinstance(cfg, WebhookAcknowledgmentConfig) and cfg.heavy_node_types is not None:
            return list(cfg.heavy_node_types)
        return list(DEFAULT_HEAVY_NODE_TYPES)

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        heavy_types = self.heavy_node_types(ctx)

        for node in graph.nodes:
            if not is_webhook_trigger(node.type):
                continue

            successors = graph.successors(node.id)
            if not successors or any(is_respond_node(s) for s in successors):
                continue
            if not any(is_heavy_node(s.type, heavy_types) for s in successors):
                continue

            yield self.finding(
                ctx,
                node.id,
                f'Webhook "{node.label}" performs heavy processing before acknowledgment '
                "(risk of timeout/duplicates)",
                'Add a "Respond to Webhook" node immediately after the webhook trigger (return 200/204), '
                "then perform heavy processing. This prevents webhook timeouts and duplicate events.",
            )


idempotency = IdempotencyRule()
dead_ends = DeadEndRule()
alert_log_enforcement = AlertLogRule()
unused_data = UnusedDataRule()
webhook_acknowledgment = WebhookAcknowledgmentRule()
