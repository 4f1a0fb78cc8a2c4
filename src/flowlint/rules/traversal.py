"""Cycle-safe graph traversal shared by the graph rules.

All walks are breadth-first over an explicit queue with a visited set, so
each node is expanded at most once and cyclic graphs terminate.
"""

from __future__ import annotations

from collections import deque

from flowlint.models.graph import EdgeOutcome, Graph
from flowlint.rules.classifiers import is_error_handler_node, is_notification_node


def downstream_closure(graph: Graph, start_id: str) -> set[str]:
    """Every node reachable from *start_id* along edges, including itself."""
    visited = {start_id}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for edge in graph.outgoing(current):
            if edge.target not in visited:
                visited.add(edge.target)
                queue.append(edge.target)
    return visited


def upstream_closure(graph: Graph, start_id: str) -> set[str]:
    """Every node that can reach *start_id*, including itself."""
    visited = {start_id}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for edge in graph.incoming(current):
            if edge.source not in visited:
                visited.add(edge.source)
                queue.append(edge.source)
    return visited


def is_rejoin_node(graph: Graph, node_id: str) -> bool:
    """Node where an error branch merges back into the main flow."""
    incoming = graph.incoming(node_id)
    if len(incoming) <= 1:
        return False
    has_error = any(edge.on == EdgeOutcome.ERROR for edge in incoming)
    has_other = any(edge.on != EdgeOutcome.ERROR for edge in incoming)
    return has_error and has_other


def is_error_path_handled(graph: Graph, start_id: str) -> bool:
    """Search forward from an error branch for a notification or error handler.

    A branch stops at a rejoin point without counting as handled.
    """
    visited = {start_id}
    queue = deque([start_id])
    while queue:
        current_id = queue.popleft()
        node = graph.get_node(current_id)
        if node is None:
            continue

        if is_notification_node(node.type) or is_error_handler_node(node.type, node.name):
            return True

        if is_rejoin_node(graph, current_id):
            continue

        for edge in graph.outgoing(current_id):
            if edge.target not in visited:
                visited.add(edge.target)
                queue.append(edge.target)
    return False
