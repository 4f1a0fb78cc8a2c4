"""JSON Schema file loader for the bundled workflow schemas."""

import json
from pathlib import Path

SCHEMA_DIR = Path(__file__).resolve().parent

# Maps logical schema names to files in this directory
SCHEMA_REGISTRY: dict[str, str] = {
    "n8n-workflow": "n8n-workflow.schema.json",
}


def load_json(path: Path) -> dict:
    """Load a JSON file and return parsed dict."""
    return json.loads(path.read_text(encoding="utf-8"))


def load_schema(schema_name: str) -> dict:
    """Load a bundled schema by its logical name.

    Raises:
        KeyError: If schema_name is not registered.
    """
    return load_json(SCHEMA_DIR / SCHEMA_REGISTRY[schema_name])
