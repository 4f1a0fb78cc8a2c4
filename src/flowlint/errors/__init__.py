from flowlint.errors.exceptions import (
    ConfigError,
    DocumentParseError,
    FlowLintError,
    ValidationError,
    ValidationIssue,
)

__all__ = [
    "ConfigError",
    "DocumentParseError",
    "FlowLintError",
    "ValidationError",
    "ValidationIssue",
]
