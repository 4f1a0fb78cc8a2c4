"""Structural validation of workflow documents using the jsonschema library.

Validation runs in three stages and stops at the first stage that fails:
JSON Schema shape, duplicate node ids, orphaned connection references.
Each failing stage reports all of its issues at once.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

import jsonschema

from flowlint.errors import ValidationError, ValidationIssue
from flowlint.schemas.loader import load_schema
from flowlint.utils.values import flatten_connections

T = TypeVar("T")

_REQUIRED_PROPERTY = re.compile(r"^'(?P<name>[^']+)' is a required property")


def build_validation_errors(
    items: Iterable[T],
    path: str,
    message_template: Callable[[T], str],
    suggestion_template: Callable[[T], str],
) -> list[ValidationIssue]:
    """Turn a collection of offending items into validation issues."""
    return [
        ValidationIssue(path=path, message=message_template(item), suggestion=suggestion_template(item))
        for item in items
    ]


def _suggestion_for(error: jsonschema.ValidationError) -> str:
    if error.validator == "required":
        match = _REQUIRED_PROPERTY.match(error.message)
        missing = match.group("name") if match else "?"
        return f'Add the required field "{missing}" to the workflow.'
    if error.validator == "type":
        return f'The field should be of type "{error.validator_value}".'
    if error.validator == "minLength":
        return "This field cannot be empty."
    return ""


def _error_path(error: jsonschema.ValidationError) -> str:
    if error.absolute_path:
        return "/" + "/".join(str(part) for part in error.absolute_path)
    return "#/" + "/".join(str(part) for part in error.absolute_schema_path)


class WorkflowValidator:
    """Validates parsed workflow documents.

    The schema is compiled once at construction; build one instance and pass
    it to every parser that needs it.
    """

    def __init__(self, schema: Mapping[str, Any] | None = None):
        self.schema = dict(schema) if schema is not None else load_schema("n8n-workflow")
        validator_cls = jsonschema.validators.validator_for(self.schema)
        validator_cls.check_schema(self.schema)
        self._validator = validator_cls(self.schema)

    def validate(self, document: Any) -> None:
        """Validate *document*.

        Raises:
            ValidationError: With every issue of the first failing stage.
        """
        self._check_schema(document)
        self._check_duplicate_node_ids(document)
        self._check_orphaned_connections(document)

    def _check_schema(self, document: Any) -> None:
        errors = sorted(self._validator.iter_errors(document), key=lambda e: e.json_path)
        if errors:
            raise ValidationError([
                ValidationIssue(
                    path=_error_path(err),
                    message=err.message or "Validation error",
                    suggestion=_suggestion_for(err),
                )
                for err in errors
            ])

    def _check_duplicate_node_ids(self, document: Mapping[str, Any]) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in document.get("nodes") or []:
            node_id = node.get("id")
            if not node_id:
                continue
            if node_id in seen and node_id not in duplicates:
                duplicates.append(node_id)
            seen.add(node_id)

        if duplicates:
            raise ValidationError(build_validation_errors(
                duplicates,
                path="nodes[].id",
                message_template=lambda node_id: f'Duplicate node ID: "{node_id}"',
                suggestion_template=lambda node_id: (
                    f'Each node must have a unique ID. Remove or rename the duplicate node with ID "{node_id}".'
                ),
            ))

    def _check_orphaned_connections(self, document: Mapping[str, Any]) -> None:
        connections = document.get("connections")
        if not connections:
            return

        known: set[str] = set()
        for node in document.get("nodes") or []:
            if node.get("id"):
                known.add(node["id"])
            if node.get("name"):
                known.add(node["name"])

        orphans: list[str] = []

        def note(ref: Any) -> None:
            if (not isinstance(ref, str) or ref not in known) and ref not in orphans:
                orphans.append(ref)

        for source, channels in connections.items():
            note(source)
            if not isinstance(channels, Mapping):
                continue
            for links in channels.values():
                for link in flatten_connections(links):
                    if link.get("node"):
                        note(link["node"])

        if orphans:
            raise ValidationError(build_validation_errors(
                orphans,
                path="connections",
                message_template=lambda ref: f'Orphaned connection reference: "{ref}"',
                suggestion_template=lambda ref: (
                    f'Connection references node "{ref}" which does not exist. '
                    "Add the missing node or remove the invalid connection."
                ),
            ))
