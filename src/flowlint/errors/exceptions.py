"""Custom exception classes for FlowLint."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    """One structural problem found in a workflow document."""

    path: str
    message: str
    suggestion: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message, "suggestion": self.suggestion}


class FlowLintError(Exception):
    """Base exception for FlowLint."""

    def __init__(self, code: str, message: str, details=None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(FlowLintError):
    """Workflow document failed structural validation.

    Always carries at least one :class:`ValidationIssue`.
    """

    def __init__(self, errors: list[ValidationIssue]):
        if not errors:
            raise ValueError("ValidationError requires at least one issue")
        self.errors = list(errors)
        super().__init__(
            "VALIDATION_ERROR",
            f"Workflow validation failed: {len(self.errors)} error(s)",
            details=[issue.to_dict() for issue in self.errors],
        )


class DocumentParseError(ValidationError):
    """Document text is neither valid JSON nor valid YAML."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__([
            ValidationIssue(
                path="$",
                message=f"Document is neither valid JSON nor valid YAML: {reason}",
                suggestion="Export the workflow again or fix the syntax error reported above.",
            )
        ])


class ConfigError(FlowLintError):
    """Configuration file exists but could not be read or parsed."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFIG_ERROR", message, details)
