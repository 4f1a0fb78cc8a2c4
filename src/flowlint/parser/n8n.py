"""Parse n8n workflow exports (JSON or YAML) into a :class:`Graph`."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

import yaml

from flowlint.errors import DocumentParseError
from flowlint.models.graph import Edge, EdgeOutcome, Graph, GraphMeta, NodeFlags, NodeRef
from flowlint.rules.classifiers import is_error_prone_node
from flowlint.schemas.validator import WorkflowValidator
from flowlint.utils.values import flatten_connections

logger = logging.getLogger(__name__)

_ID_LINE = re.compile(r'"id":\s*"([^"]+)"')
_NAME_LINE = re.compile(r'"name":\s*"([^"]+)"')
_LINE_BREAK = re.compile(r"\r?\n")

# Flags read from the node root first, then from node["settings"]
_SETTINGS_FLAGS = ("retryOnFail", "waitBetweenTries", "maxTries")

_BOOL_TAG = "tag:yaml.org,2002:bool"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class WorkflowYamlLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 scalars.

    Only ``true``/``false`` resolve to booleans and timestamps stay strings,
    so ``yes``, ``No`` or ``2024-01-01`` reach the rules as written.
    """


WorkflowYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (_BOOL_TAG, _TIMESTAMP_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
WorkflowYamlLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def load_document(text: str) -> Any:
    """Decode *text* as JSON, falling back to YAML.

    Raises:
        DocumentParseError: If neither decoder accepts the text.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as json_exc:
        try:
            return yaml.load(text, Loader=WorkflowYamlLoader)
        except yaml.YAMLError as yaml_exc:
            raise DocumentParseError(f"{json_exc.msg}; {yaml_exc}") from yaml_exc


def resolve_edge_outcome(channel: str, output_index: int | None, source_type: str | None) -> EdgeOutcome:
    """Map a connection channel and output slot to edge semantics.

    Secondary ``main`` outputs (index > 0) of error-prone nodes are their
    error outputs. Other node kinds keep positional outputs as success.
    """
    if channel == "error":
        return EdgeOutcome.ERROR
    if channel == "timeout":
        return EdgeOutcome.TIMEOUT
    if (
        channel == "main"
        and output_index is not None
        and output_index > 0
        and source_type
        and is_error_prone_node(source_type)
    ):
        return EdgeOutcome.ERROR
    return EdgeOutcome.SUCCESS


def _build_flags(raw: Mapping[str, Any]) -> NodeFlags | None:
    settings = raw.get("settings") if isinstance(raw.get("settings"), Mapping) else {}

    def pick(key: str) -> Any:
        value = raw.get(key)
        return value if value is not None else settings.get(key)

    flags = NodeFlags(
        continue_on_fail=raw.get("continueOnFail"),
        retry_on_fail=pick("retryOnFail"),
        wait_between_tries=pick("waitBetweenTries"),
        max_tries=pick("maxTries"),
    )
    present = (
        flags.continue_on_fail is not None
        or flags.retry_on_fail is not None
        or flags.wait_between_tries is not None
    )
    return flags if present else None


def _build_node(raw: Mapping[str, Any], index: int) -> NodeRef:
    params = raw.get("parameters")
    credentials = raw.get("credentials")
    return NodeRef(
        id=raw.get("id") or raw.get("name") or f"node-{index}",
        type=raw["type"],
        name=raw.get("name"),
        params=dict(params) if isinstance(params, Mapping) else None,
        credentials=dict(credentials) if isinstance(credentials, Mapping) else None,
        flags=_build_flags(raw),
    )


def recover_node_lines(text: str, nodes: list[NodeRef]) -> dict[str, int]:
    """Best-effort 1-based source line per node id.

    A line-oriented scan of ``"id": "..."`` and ``"name": "..."`` pairs; the
    last occurrence of a value wins, and a node's name line is preferred over
    its id line. Documents without such lines (e.g. YAML) yield no entries.
    """
    id_lines: dict[str, int] = {}
    name_lines: dict[str, int] = {}
    for number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if match := _ID_LINE.search(line):
            id_lines[match.group(1)] = number
        if match := _NAME_LINE.search(line):
            name_lines[match.group(1)] = number

    node_lines: dict[str, int] = {}
    for node in nodes:
        line = (name_lines.get(node.name) if node.name else None) or id_lines.get(node.id)
        if line:
            node_lines[node.id] = line
    return node_lines


class WorkflowParser:
    """Turns workflow text into a validated :class:`Graph`.

    The validator is compiled once; reuse a parser across documents.
    """

    def __init__(self, validator: WorkflowValidator | None = None):
        self.validator = validator or WorkflowValidator()

    def parse(self, text: str) -> Graph:
        """Parse and validate *text*.

        Raises:
            ValidationError: If the document is malformed or structurally
                invalid (``DocumentParseError`` when it cannot be decoded).
        """
        document = load_document(text)
        self.validator.validate(document)

        nodes = [_build_node(raw, index) for index, raw in enumerate(document["nodes"])]

        name_to_id: dict[str, str] = {}
        for node in nodes:
            name_to_id[node.id] = node.id
            if node.name:
                name_to_id[node.name] = node.id
        by_id = {node.id: node for node in nodes}

        edges: list[Edge] = []
        for source_ref, channels in (document.get("connections") or {}).items():
            if not channels:
                continue
            source_id = name_to_id.get(source_ref, source_ref)
            source = by_id.get(source_id)
            source_type = source.type if source else None

            for channel, value in channels.items():
                if isinstance(value, list):
                    slots = list(enumerate(value))
                else:
                    slots = [(None, value)]

                for output_index, entry in slots:
                    outcome = resolve_edge_outcome(channel, output_index, source_type)
                    for link in flatten_connections(entry):
                        target_ref = link.get("node")
                        if not target_ref:
                            continue
                        edges.append(Edge(
                            source=source_id,
                            target=name_to_id.get(target_ref, target_ref),
                            on=outcome,
                        ))

        graph = Graph(
            nodes=nodes,
            edges=edges,
            meta=GraphMeta(
                credentials_present=bool(document.get("credentials")),
                node_lines=recover_node_lines(text, nodes),
            ),
        )
        logger.debug("workflow_parsed", extra={"nodes": len(nodes), "edges": len(edges)})
        return graph


def parse_workflow(text: str, validator: WorkflowValidator | None = None) -> Graph:
    """Parse a workflow document in one call.

    Pass a shared *validator* when parsing many documents.
    """
    return WorkflowParser(validator).parse(text)
