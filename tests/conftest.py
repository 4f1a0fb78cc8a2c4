"""Shared test fixtures."""

import json

import pytest

from flowlint.config import DEFAULT_CONFIG, config_from_mapping, default_config
from flowlint.models import Edge, EdgeOutcome, Graph, NodeRef, RuleContext


@pytest.fixture
def config():
    """Built-in configuration with every rule enabled."""
    return default_config()


@pytest.fixture
def only_rule():
    """Config with exactly one rule enabled, using its default settings."""

    def _build(config_key: str, **overrides):
        block = {**DEFAULT_CONFIG["rules"][config_key], **overrides}
        return config_from_mapping({"rules": {config_key: block}})

    return _build


@pytest.fixture
def make_graph():
    """Build a Graph from ``(id, type[, name])`` tuples and ``(from, to[, on])`` edges."""

    def _build(nodes, edges=()):
        node_refs = []
        for item in nodes:
            if isinstance(item, NodeRef):
                node_refs.append(item)
            else:
                node_id, node_type, *rest = item
                node_refs.append(NodeRef(id=node_id, type=node_type, name=rest[0] if rest else node_id))
        edge_refs = [
            Edge(source=e[0], target=e[1], on=EdgeOutcome(e[2]) if len(e) > 2 else EdgeOutcome.SUCCESS)
            for e in edges
        ]
        return Graph(nodes=node_refs, edges=edge_refs)

    return _build


@pytest.fixture
def make_ctx(config):
    def _build(cfg=None, path="workflows/test.json", node_lines=None):
        return RuleContext(path=path, config=cfg or config, node_lines=node_lines or {})

    return _build


@pytest.fixture
def workflow_text():
    """Serialize nodes and connections as a pretty-printed n8n export."""

    def _build(nodes, connections=None, **extra):
        document = {"name": "Test workflow", "nodes": nodes, "connections": connections or {}, **extra}
        return json.dumps(document, indent=2)

    return _build


# ── Sample workflows ──────────────────────────────────────────────────────

WEBHOOK_TO_HTTP = {
    "nodes": [
        {"id": "w", "name": "Incoming Order", "type": "n8n-nodes-base.webhook", "parameters": {}},
        {
            "id": "h",
            "name": "Create Invoice",
            "type": "n8n-nodes-base.httpRequest",
            "parameters": {"url": "https://api.example.com/invoices", "method": "POST"},
        },
        {"id": "r", "name": "Respond to Webhook", "type": "n8n-nodes-base.respondToWebhook", "parameters": {}},
    ],
    "connections": {
        "Incoming Order": {"main": [[{"node": "Create Invoice", "type": "main", "index": 0}]]},
        "Create Invoice": {"main": [[{"node": "Respond to Webhook", "type": "main", "index": 0}]]},
    },
}


@pytest.fixture
def webhook_workflow():
    return json.dumps(WEBHOOK_TO_HTTP, indent=2)
