"""
Write the OpenAPI schema of the Todo API to a JSON file.

API clients and documentation tools can consume the schema without running
the server.

Usage:
    python -m todo_api.generate_openapi [output_path]

The default output path is interfaces/openapi.json under the current directory.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from fastapi import FastAPI

from .main import create_app, openapi_tags
from .repositories import InMemoryRepository

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the schema carries the tag metadata declared on the app. Existing
    tag definitions are left alone.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def generate_openapi(output_path: str = DEFAULT_OUTPUT, app: Optional[FastAPI] = None) -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    # The schema does not depend on the store, so never touch a configured database here.
    app = app or create_app(repository=InMemoryRepository())
    schema = app.openapi()
    _ensure_tags(schema)

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", output_path)
    return output_path


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    path = generate_openapi(args[0] if args else DEFAULT_OUTPUT)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
