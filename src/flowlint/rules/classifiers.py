"""Heuristic classification of nodes by their declared type string.

Every predicate is a case-insensitive keyword match against one of the
pattern tables below. The tables are plain data so they can be extended or
replaced without touching the rules. Matching intentionally over-approximates:
a risky node misclassified as risky costs a false positive, the reverse hides
a defect.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from flowlint.models.graph import NodeRef


@dataclass(frozen=True)
class PatternTable:
    """Named list of keywords matched as a case-insensitive alternation."""

    name: str
    keywords: tuple[str, ...]
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern = "|".join(re.escape(k) for k in self.keywords)
        object.__setattr__(self, "_compiled", re.compile(pattern, re.IGNORECASE))

    def matches(self, text: str | None) -> bool:
        return bool(text) and self._compiled.search(text) is not None


# ---------------------------------------------------------------------------
# Pattern library
# ---------------------------------------------------------------------------

API_PATTERNS = PatternTable("api", ("http", "request", "google", "facebook", "ads"))

MUTATION_PATTERNS = PatternTable(
    "mutation",
    ("write", "insert", "update", "delete", "post", "put", "patch", "database", "mongo", "supabase", "sheet"),
)

EXECUTION_PATTERNS = PatternTable("execution", ("execute", "workflow", "function"))

NOTIFICATION_PATTERNS = PatternTable(
    "notification",
    (
        "slack", "discord", "email", "gotify", "mattermost", "microsoftTeams",
        "pushbullet", "pushover", "rocketchat", "zulip", "telegram",
    ),
)

ERROR_HANDLER_TYPE_PATTERNS = PatternTable("error_handler_type", ("stopanderror", "errorhandler", "raiseerror"))

ERROR_HANDLER_NAME_PATTERNS = PatternTable("error_handler_name", ("stop and error", "error handler"))

TERMINAL_PATTERNS = PatternTable(
    "terminal",
    (
        "respond", "reply", "end", "stop", "terminate", "return", "sticky", "note", "noop", "no operation",
        "slack", "email", "discord", "teams", "webhook", "telegram", "pushbullet", "mattermost",
        "notifier", "notification", "alert", "sms", "call",
    ),
)

RESPOND_TO_WEBHOOK_PATTERNS = PatternTable("respond_to_webhook", ("respondToWebhook",))

INGRESS_PATTERNS = PatternTable("ingress", ("webhook", "trigger", "start"))

LOOP_PATTERNS = PatternTable("loop", ("loop", "batch", "while", "repeat"))

HEAVY_LOOP_PATTERNS = PatternTable("heavy_loop", ("loop", "batch"))

WEBHOOK_TRIGGER_TYPE = "n8n-nodes-base.webhook"
RESPOND_TO_WEBHOOK_TYPE = "n8n-nodes-base.respondToWebhook"

_RESPOND_WEBHOOK = re.compile(r"respond.*webhook", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_api_node(node_type: str) -> bool:
    return API_PATTERNS.matches(node_type)


def is_mutation_node(node_type: str) -> bool:
    return MUTATION_PATTERNS.matches(node_type)


def is_error_prone_node(node_type: str) -> bool:
    """Node can fail in a way that needs an explicit error path."""
    return is_api_node(node_type) or is_mutation_node(node_type) or EXECUTION_PATTERNS.matches(node_type)


def is_notification_node(node_type: str) -> bool:
    return NOTIFICATION_PATTERNS.matches(node_type)


def is_error_handler_node(node_type: str, name: str | None = None) -> bool:
    return ERROR_HANDLER_TYPE_PATTERNS.matches(node_type) or ERROR_HANDLER_NAME_PATTERNS.matches(name)


def is_terminal_node(node_type: str, name: str | None = None) -> bool:
    """Node is a legitimate end of a flow (responds, stops, or notifies)."""
    return TERMINAL_PATTERNS.matches(f"{node_type} {name or ''}")


def is_meaningful_consumer(node: NodeRef) -> bool:
    """Node has an externally observable side effect."""
    return (
        is_mutation_node(node.type)
        or is_notification_node(node.type)
        or is_api_node(node.type)
        or RESPOND_TO_WEBHOOK_PATTERNS.matches(node.type)
    )


def is_ingress_node(node_type: str) -> bool:
    return INGRESS_PATTERNS.matches(node_type)


def is_loop_node(node_type: str) -> bool:
    return LOOP_PATTERNS.matches(node_type)


def is_webhook_trigger(node_type: str) -> bool:
    """Webhook trigger, excluding the respond-to-webhook action."""
    return node_type == WEBHOOK_TRIGGER_TYPE or (
        "webhook" in node_type and "respondToWebhook" not in node_type
    )


def is_respond_node(node: NodeRef) -> bool:
    """Node acknowledges a webhook call."""
    return (
        node.type == RESPOND_TO_WEBHOOK_TYPE
        or bool(_RESPOND_WEBHOOK.search(node.type))
        or bool(_RESPOND_WEBHOOK.search(node.name or ""))
    )


def is_heavy_node(node_type: str, heavy_node_types: list[str]) -> bool:
    return node_type in heavy_node_types or HEAVY_LOOP_PATTERNS.matches(node_type)
