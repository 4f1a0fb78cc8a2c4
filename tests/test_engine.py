"""Tests for the rule registry and run_all_rules."""

import json

import pytest

from flowlint.config import DEFAULT_CONFIG, config_from_mapping, deep_merge
from flowlint.models import Finding, Severity
from flowlint.parser import parse_workflow
from flowlint.rules import BUILTIN_RULES, RULES_METADATA, Rule, get_rule_meta, run_all_rules

RISKY_WORKFLOW = {
    "nodes": [
        {"id": "w", "name": "Incoming Order", "type": "n8n-nodes-base.webhook", "parameters": {}},
        {
            "id": "h",
            "name": "HTTP Request",
            "type": "n8n-nodes-base.httpRequest",
            "parameters": {
                "url": "https://prod.example.com/orders",
                "headers": {"Authorization": "Bearer abc123"},
            },
            "continueOnFail": True,
            "retryOnFail": True,
        },
        {"id": "loop", "name": "Loop Items", "type": "n8n-nodes-base.splitInBatches", "parameters": {}},
        {"id": "db", "name": "Save Order", "type": "n8n-nodes-base.postgres", "parameters": {}},
        {"id": "set", "name": "Set", "type": "n8n-nodes-base.set", "parameters": {}},
    ],
    "connections": {
        "Incoming Order": {"main": [[{"node": "HTTP Request"}]]},
        "HTTP Request": {"main": [[{"node": "Loop Items"}]]},
        "Loop Items": {"main": [[{"node": "Save Order"}]]},
        "Save Order": {"main": [[{"node": "Set"}]]},
    },
}


@pytest.fixture
def risky_graph():
    return parse_workflow(json.dumps(RISKY_WORKFLOW, indent=2))


RULE_ORDER = [rule.rule_id for rule in BUILTIN_RULES]


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════

class TestRegistry:
    def test_builtin_order(self):
        assert RULE_ORDER == [f"R{i}" for i in range(1, 15)]

    def test_every_rule_has_metadata(self):
        assert [meta.id for meta in RULES_METADATA] == RULE_ORDER
        for rule in BUILTIN_RULES:
            assert rule.severity == get_rule_meta(rule.rule_id).severity

    def test_config_keys_match_metadata_names(self):
        assert [rule.config_key for rule in BUILTIN_RULES] == [meta.name for meta in RULES_METADATA]

    def test_unknown_metadata(self):
        with pytest.raises(KeyError, match="R99"):
            get_rule_meta("R99")


# ═══════════════════════════════════════════════════════════════════════════
# run_all_rules
# ═══════════════════════════════════════════════════════════════════════════

class TestRunAllRules:
    def test_expected_rules_fire(self, risky_graph, make_ctx):
        findings = run_all_rules(risky_graph, make_ctx())
        fired = {f.rule for f in findings}
        assert {"R2", "R3", "R4", "R6", "R9", "R10", "R11", "R12", "R13", "R14"} <= fired

    def test_findings_in_rule_order(self, risky_graph, make_ctx):
        findings = run_all_rules(risky_graph, make_ctx())
        positions = [RULE_ORDER.index(f.rule) for f in findings]
        assert positions == sorted(positions)

    def test_idempotent(self, risky_graph, make_ctx):
        ctx = make_ctx()
        assert run_all_rules(risky_graph, ctx) == run_all_rules(risky_graph, ctx)

    def test_lines_attached(self, risky_graph, make_ctx):
        ctx = make_ctx(node_lines=risky_graph.meta.node_lines)
        findings = run_all_rules(risky_graph, ctx)
        assert all(f.line == risky_graph.meta.node_lines[f.node_id] for f in findings)

    def test_empty_config_disables_everything(self, risky_graph, make_ctx):
        assert run_all_rules(risky_graph, make_ctx(cfg=config_from_mapping({}))) == []

    @pytest.mark.parametrize("rule", BUILTIN_RULES, ids=RULE_ORDER)
    def test_disabling_one_rule(self, risky_graph, make_ctx, rule):
        data = deep_merge(DEFAULT_CONFIG, {"rules": {rule.config_key: {"enabled": False}}})
        findings = run_all_rules(risky_graph, make_ctx(cfg=config_from_mapping(data)))
        assert rule.rule_id not in {f.rule for f in findings}


# ═══════════════════════════════════════════════════════════════════════════
# Custom rules
# ═══════════════════════════════════════════════════════════════════════════

class AlwaysOnRule(Rule):
    rule_id = "C1"
    config_key = "custom_banner"

    def is_enabled(self, ctx):
        return True

    def check(self, graph, ctx):
        for node in graph.nodes[:1]:
            yield self.finding(ctx, node.id, f"Custom check saw {node.label}")


class TestExtraRules:
    def test_plain_function_appended(self, risky_graph, make_ctx):
        ctx = make_ctx(cfg=config_from_mapping({}))

        def count_nodes(graph, ctx):
            return [Finding(rule="X1", severity=Severity.NIT, path=ctx.path, message=f"{len(graph.nodes)} nodes")]

        findings = run_all_rules(risky_graph, ctx, extra_rules=[count_nodes])
        assert [f.message for f in findings] == ["5 nodes"]

    def test_rule_subclass_after_builtins(self, risky_graph, make_ctx):
        findings = run_all_rules(risky_graph, make_ctx(), extra_rules=[AlwaysOnRule(severity=Severity.NIT)])
        assert findings[-1].rule == "C1"
        assert findings[-1].message == "Custom check saw Incoming Order"
        assert findings[-1].severity == Severity.NIT

    def test_extras_keep_their_order(self, risky_graph, make_ctx):
        ctx = make_ctx(cfg=config_from_mapping({}))
        first = lambda graph, ctx: [Finding("E1", Severity.NIT, ctx.path, "first")]  # noqa: E731
        second = lambda graph, ctx: [Finding("E2", Severity.NIT, ctx.path, "second")]  # noqa: E731
        findings = run_all_rules(risky_graph, ctx, extra_rules=[first, second])
        assert [f.rule for f in findings] == ["E1", "E2"]

    def test_rule_exception_propagates(self, risky_graph, make_ctx):
        def broken(graph, ctx):
            raise RuntimeError("rule bug")

        with pytest.raises(RuntimeError, match="rule bug"):
            run_all_rules(risky_graph, make_ctx(), extra_rules=[broken])
