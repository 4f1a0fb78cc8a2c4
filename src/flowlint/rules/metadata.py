"""Static metadata for the built-in rules."""

from __future__ import annotations

from dataclasses import dataclass

from flowlint.models.finding import Severity


@dataclass(frozen=True)
class RuleMetadata:
    id: str
    name: str
    severity: Severity
    description: str
    details: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "severity": self.severity.value,
            "description": self.description,
            "details": self.details,
        }


RULES_METADATA: list[RuleMetadata] = [
    RuleMetadata(
        id="R1",
        name="rate_limit_retry",
        severity=Severity.MUST,
        description="Ensures that nodes making external API calls have a retry mechanism configured.",
        details=(
            "Critical for building resilient workflows that can handle transient network issues "
            "or temporary service unavailability."
        ),
    ),
    RuleMetadata(
        id="R2",
        name="error_handling",
        severity=Severity.MUST,
        description="Prevents the use of configurations that might hide errors.",
        details="Workflows should explicitly handle errors rather than ignoring them with continueOnFail: true.",
    ),
    RuleMetadata(
        id="R3",
        name="idempotency",
        severity=Severity.SHOULD,
        description="Guards against operations that are not idempotent with retries configured.",
        details=(
            "Detects patterns where a webhook trigger could lead to duplicate processing "
            "in databases or external services."
        ),
    ),
    RuleMetadata(
        id="R4",
        name="secrets",
        severity=Severity.MUST,
        description="Detects hardcoded secrets, API keys, or credentials within node parameters.",
        details="All secrets should be stored securely using credential management systems.",
    ),
    RuleMetadata(
        id="R5",
        name="dead_ends",
        severity=Severity.SHOULD,
        description="Finds nodes or workflow branches not connected to any other node.",
        details="Indicates incomplete or dead logic that should be reviewed or removed.",
    ),
    RuleMetadata(
        id="R6",
        name="long_running",
        severity=Severity.SHOULD,
        description="Flags workflows with potential for excessive runtime.",
        details="Detects loops with high iteration counts or long timeouts that could cause performance issues.",
    ),
    RuleMetadata(
        id="R7",
        name="alert_log_enforcement",
        severity=Severity.SHOULD,
        description="Ensures critical paths include logging or alerting steps.",
        details="For example, a failed payment processing branch should trigger an alert for monitoring.",
    ),
    RuleMetadata(
        id="R8",
        name="unused_data",
        severity=Severity.NIT,
        description="Detects when node output data is not consumed by subsequent nodes.",
        details="Identifies unnecessary data processing that could be optimized or removed.",
    ),
    RuleMetadata(
        id="R9",
        name="config_literals",
        severity=Severity.SHOULD,
        description=(
            "Flags hardcoded literals (URLs, environment tags, tenant IDs) that should come from configuration."
        ),
        details="Promotes externalized configuration and prevents hardcoded environment-specific values.",
    ),
    RuleMetadata(
        id="R10",
        name="naming_convention",
        severity=Severity.NIT,
        description="Enforces consistent and descriptive naming for nodes.",
        details=(
            "Improves workflow readability and maintainability "
            "(e.g., 'Fetch Customer Data from CRM' vs 'HTTP Request')."
        ),
    ),
    RuleMetadata(
        id="R11",
        name="deprecated_nodes",
        severity=Severity.SHOULD,
        description="Warns about deprecated node types and suggests alternatives.",
        details="Helps maintain workflows using current, supported node implementations.",
    ),
    RuleMetadata(
        id="R12",
        name="unhandled_error_path",
        severity=Severity.MUST,
        description="Ensures nodes with error outputs have connected error handling branches.",
        details="Prevents silent failures by requiring explicit error path handling.",
    ),
    RuleMetadata(
        id="R13",
        name="webhook_acknowledgment",
        severity=Severity.MUST,
        description="Detects webhooks performing heavy processing without immediate acknowledgment.",
        details=(
            "Prevents timeout and duplicate events by requiring 'Respond to Webhook' node before heavy "
            "operations (HTTP requests, database queries, AI/LLM calls)."
        ),
    ),
    RuleMetadata(
        id="R14",
        name="retry_after_compliance",
        severity=Severity.SHOULD,
        description="Detects HTTP nodes with retry logic that ignore Retry-After headers from 429/503 responses.",
        details=(
            "APIs return Retry-After headers (seconds or HTTP date) to indicate when to retry. Ignoring these "
            "causes aggressive retry storms, wasted attempts, and potential API bans."
        ),
    ),
]

_BY_ID = {meta.id: meta for meta in RULES_METADATA}


def get_rule_meta(rule_id: str) -> RuleMetadata:
    """Look up metadata for a built-in rule.

    Raises:
        KeyError: If the rule id is unknown.
    """
    try:
        return _BY_ID[rule_id]
    except KeyError:
        raise KeyError(f"Metadata for rule {rule_id} not found") from None
