"""Lint configuration: per-rule settings, defaults, and ``.flowlint.yml`` loading.

Rules read their own block from ``FlowLintConfig.rules``. A block that is
absent (``None``) or has ``enabled: false`` turns the rule off. Unknown keys
anywhere in the document are ignored.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from flowlint.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".flowlint.yml", ".flowlint.yaml", "flowlint.config.yml")


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class RuleConfig(_ConfigModel):
    """Common shape of every rule block."""

    enabled: bool = False


class RetryPolicy(_ConfigModel):
    count: int = 3
    strategy: str = "exponential"
    base_ms: int = 500


class RateLimitRetryConfig(RuleConfig):
    max_concurrency: int | None = None
    default_retry: RetryPolicy | None = None


class ErrorHandlingConfig(RuleConfig):
    forbid_continue_on_fail: bool = False


class IdempotencyConfig(RuleConfig):
    key_field_candidates: list[str] = Field(default_factory=list)


class DenylistConfig(RuleConfig):
    denylist_regex: list[str] = Field(default_factory=list)


class LongRunningConfig(RuleConfig):
    max_iterations: int | None = None
    timeout_ms: int | None = None


class NamingConventionConfig(RuleConfig):
    generic_names: list[str] = Field(default_factory=list)


class WebhookAcknowledgmentConfig(RuleConfig):
    heavy_node_types: list[str] | None = None


class RetryAfterComplianceConfig(RuleConfig):
    suggest_exponential_backoff: bool = False
    suggest_jitter: bool = False


class RulesConfig(_ConfigModel):
    rate_limit_retry: RateLimitRetryConfig | None = None
    error_handling: ErrorHandlingConfig | None = None
    idempotency: IdempotencyConfig | None = None
    secrets: DenylistConfig | None = None
    dead_ends: RuleConfig | None = None
    long_running: LongRunningConfig | None = None
    unused_data: RuleConfig | None = None
    unhandled_error_path: RuleConfig | None = None
    alert_log_enforcement: RuleConfig | None = None
    deprecated_nodes: RuleConfig | None = None
    naming_convention: NamingConventionConfig | None = None
    config_literals: DenylistConfig | None = None
    webhook_acknowledgment: WebhookAcknowledgmentConfig | None = None
    retry_after_compliance: RetryAfterComplianceConfig | None = None


class FilesConfig(_ConfigModel):
    include: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)


class ReportConfig(_ConfigModel):
    annotations: bool = True
    summary_limit: int = 25


class FlowLintConfig(_ConfigModel):
    """Resolved configuration handed to every rule."""

    files: FilesConfig = Field(default_factory=FilesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)

    def rule(self, config_key: str) -> RuleConfig | None:
        """Return a rule block by its config key, or None when absent."""
        return getattr(self.rules, config_key, None)


DEFAULT_HEAVY_NODE_TYPES = [
    "n8n-nodes-base.httpRequest",
    "n8n-nodes-base.postgres",
    "n8n-nodes-base.mysql",
    "n8n-nodes-base.mongodb",
    "n8n-nodes-base.openAi",
    "n8n-nodes-base.anthropic",
]

DEFAULT_CONFIG: dict[str, Any] = {
    "files": {
        "include": [
            "**/*.n8n.json",
            "**/workflows/*.json",
            "**/workflows/**/*.json",
            "**/*.n8n.yaml",
            "**/*.json",
        ],
        "ignore": [
            "samples/**",
            "**/*.spec.json",
            "node_modules/**",
            "package*.json",
            "tsconfig*.json",
            ".flowlint.yml",
            ".github/**",
            ".husky/**",
            ".vscode/**",
            "infra/**",
            "*.config.js",
            "*.config.ts",
            "**/*.lock",
        ],
    },
    "report": {"annotations": True, "summary_limit": 25},
    "rules": {
        "rate_limit_retry": {
            "enabled": True,
            "max_concurrency": 5,
            "default_retry": {"count": 3, "strategy": "exponential", "base_ms": 500},
        },
        "error_handling": {"enabled": True, "forbid_continue_on_fail": True},
        "idempotency": {"enabled": True, "key_field_candidates": ["eventId", "messageId"]},
        "secrets": {"enabled": True, "denylist_regex": ["(?i)api[_-]?key", "Bearer "]},
        "dead_ends": {"enabled": True},
        "long_running": {"enabled": True, "max_iterations": 1000, "timeout_ms": 300000},
        "unused_data": {"enabled": True},
        "unhandled_error_path": {"enabled": True},
        "alert_log_enforcement": {"enabled": True},
        "deprecated_nodes": {"enabled": True},
        "naming_convention": {
            "enabled": True,
            "generic_names": ["http request", "set", "if", "merge", "switch", "no-op", "start"],
        },
        "config_literals": {
            "enabled": True,
            "denylist_regex": [
                r"(?i)\b(dev|development)\b",
                r"(?i)\b(stag|staging)\b",
                r"(?i)\b(prod|production)\b",
                r"(?i)\b(test|testing)\b",
            ],
        },
        "webhook_acknowledgment": {
            "enabled": True,
            "heavy_node_types": [*DEFAULT_HEAVY_NODE_TYPES, "n8n-nodes-base.huggingFace"],
        },
        "retry_after_compliance": {
            "enabled": True,
            "suggest_exponential_backoff": True,
            "suggest_jitter": True,
        },
    },
}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of *base* with *override* merged in.

    Nested mappings merge recursively, lists and scalars replace, and ``None``
    values in *override* are skipped.
    """
    merged = copy.deepcopy(dict(base))
    if not override:
        return merged
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        elif isinstance(value, list):
            merged[key] = list(value)
        else:
            merged[key] = value
    return merged


def config_from_mapping(data: Mapping[str, Any]) -> FlowLintConfig:
    """Build a config from a plain mapping without applying rule defaults.

    Rules missing from ``data["rules"]`` stay disabled.
    """
    try:
        return FlowLintConfig.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ConfigError("Invalid FlowLint configuration", details=exc.errors()) from exc


def default_config() -> FlowLintConfig:
    """Built-in configuration with every rule enabled."""
    return config_from_mapping(DEFAULT_CONFIG)


def parse_config(content: str) -> FlowLintConfig:
    """Parse YAML configuration text and merge it over the defaults."""
    try:
        parsed = yaml.safe_load(content) if content else None
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, Mapping):
        raise ConfigError(
            f"Config root must be a mapping, got {type(parsed).__name__}"
        )
    return config_from_mapping(deep_merge(DEFAULT_CONFIG, parsed))


def find_config_file(start: Path | None = None) -> Path | None:
    """Look for a known config filename in *start* (default cwd)."""
    directory = (start or Path.cwd()).resolve()
    for candidate in CONFIG_FILENAMES:
        path = directory / candidate
        if path.is_file():
            return path
    return None


def load_config(config_path: str | Path | None = None, cwd: Path | None = None) -> FlowLintConfig:
    """Load configuration from *config_path* or discover it in *cwd*.

    A missing file yields the defaults; an unreadable or malformed one raises
    :class:`ConfigError`.
    """
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            logger.info("config_not_found", extra={"config_path": str(path)})
            return default_config()
    else:
        path = find_config_file(cwd)
        if path is None:
            return default_config()

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    logger.debug("config_loaded", extra={"config_path": str(path)})
    return parse_config(content)


def validate_config(config: object) -> bool:
    """Check that *config* has the files/report/rules mapping structure."""
    if isinstance(config, FlowLintConfig):
        return True
    if not isinstance(config, Mapping):
        return False
    return all(isinstance(config.get(key), Mapping) for key in ("files", "report", "rules"))
