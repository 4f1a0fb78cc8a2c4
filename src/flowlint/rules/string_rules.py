"""Denylist rules over literal strings in node parameters."""

from __future__ import annotations

from flowlint.rules.base import HardcodedStringRule

secrets = HardcodedStringRule(
    "R4",
    "secrets",
    message_fn=lambda node, value: (
        f"Node {node.label} contains a hardcoded secret (move it to credentials/env vars)"
    ),
    details=(
        "Move API keys/tokens into Credentials or environment variables; "
        "the workflow should only reference {{$credentials.*}} expressions."
    ),
)

config_literals = HardcodedStringRule(
    "R9",
    "config_literals",
    message_fn=lambda node, value: (
        f'Node {node.label} contains env-specific literal "{value[:40]}" (move to expression/credential)'
    ),
    details=(
        "Move environment-specific URLs/IDs into expressions or credentials "
        "(e.g., {{$env.API_BASE_URL}}) so the workflow is portable."
    ),
)
