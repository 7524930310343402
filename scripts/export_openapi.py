#!/usr/bin/env python3
"""Write the classroom API's OpenAPI schema to disk.

Usage: python scripts/export_openapi.py [OUTPUT]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from forge.api.main import create_app
from forge.core.config import get_settings

DEFAULT_OUTPUT = Path("docs/api/openapi.json")


def export_openapi(app: FastAPI, destination: Path) -> dict[str, Any]:
    """Persist the OpenAPI schema to ``destination`` and return it."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    schema = app.openapi()
    destination.write_text(json.dumps(schema, indent=2, sort_keys=True))
    return schema


def main() -> None:
    destination = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    schema = export_openapi(create_app(get_settings()), destination)
    print(
        f"✅ Wrote {schema['info']['title']} {schema['info']['version']} "
        f"({len(schema['paths'])} paths) to {destination}"
    )


if __name__ == "__main__":
    main()
