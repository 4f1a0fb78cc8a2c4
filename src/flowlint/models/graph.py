"""Canonical workflow graph consumed by every rule.

The parser produces these objects once per document; rules only read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]


class EdgeOutcome(StrEnum):
    """Resolved semantics of a connection."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass
class NodeFlags:
    """Execution-control attributes normalized from node root or ``settings``."""

    continue_on_fail: bool | None = None
    retry_on_fail: bool | str | None = None
    wait_between_tries: int | float | str | None = None
    max_tries: int | float | str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "continueOnFail": self.continue_on_fail,
            "retryOnFail": self.retry_on_fail,
            "waitBetweenTries": self.wait_between_tries,
            "maxTries": self.max_tries,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class NodeRef:
    """A single workflow step."""

    id: str
    type: str
    name: str | None = None
    params: dict[str, JSONValue] | None = None
    credentials: dict[str, JSONValue] | None = None
    flags: NodeFlags | None = None

    @property
    def label(self) -> str:
        """Display name used in finding messages."""
        return self.name or self.id

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.name is not None:
            data["name"] = self.name
        if self.params is not None:
            data["params"] = self.params
        if self.credentials is not None:
            data["cred"] = self.credentials
        if self.flags is not None:
            data["flags"] = self.flags.to_dict()
        return data


@dataclass
class Edge:
    """A directed connection between two node ids."""

    source: str
    target: str
    on: EdgeOutcome = EdgeOutcome.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.on == EdgeOutcome.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.source, "to": self.target, "on": self.on.value}


@dataclass
class GraphMeta:
    """Document-level facts recovered while parsing."""

    credentials_present: bool = False
    node_lines: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"credentials": self.credentials_present, "nodeLines": dict(self.node_lines)}


@dataclass
class Graph:
    """Graph representation of a workflow.

    Node ids are unique and every edge endpoint refers to a node in ``nodes``
    (guaranteed by structural validation). Cycles are allowed.
    """

    nodes: list[NodeRef] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    meta: GraphMeta = field(default_factory=GraphMeta)

    _by_id: dict[str, NodeRef] | None = field(default=None, init=False, repr=False, compare=False)
    _outgoing: dict[str, list[Edge]] | None = field(default=None, init=False, repr=False, compare=False)
    _incoming: dict[str, list[Edge]] | None = field(default=None, init=False, repr=False, compare=False)

    def _index(self) -> None:
        by_id: dict[str, NodeRef] = {}
        for node in self.nodes:
            by_id.setdefault(node.id, node)
        outgoing: dict[str, list[Edge]] = {}
        incoming: dict[str, list[Edge]] = {}
        for edge in self.edges:
            outgoing.setdefault(edge.source, []).append(edge)
            incoming.setdefault(edge.target, []).append(edge)
        self._by_id = by_id
        self._outgoing = outgoing
        self._incoming = incoming

    def get_node(self, node_id: str) -> NodeRef | None:
        """Get node by ID."""
        if self._by_id is None:
            self._index()
        return self._by_id.get(node_id)

    def outgoing(self, node_id: str) -> list[Edge]:
        """Edges leaving a node, in declaration order."""
        if self._outgoing is None:
            self._index()
        return self._outgoing.get(node_id, [])

    def incoming(self, node_id: str) -> list[Edge]:
        """Edges entering a node, in declaration order."""
        if self._incoming is None:
            self._index()
        return self._incoming.get(node_id, [])

    def successors(self, node_id: str) -> list[NodeRef]:
        """Immediate successor nodes (one per outgoing edge)."""
        found = []
        for edge in self.outgoing(node_id):
            node = self.get_node(edge.target)
            if node is not None:
                found.append(node)
        return found

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "meta": self.meta.to_dict(),
        }
