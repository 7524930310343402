from __future__ import annotations

import json

from forge.api.main import create_app

from scripts.export_openapi import export_openapi


class TestExportOpenapi:
    def test_writes_schema_to_nested_destination(self, tmp_path, settings) -> None:
        """Missing parent directories are created and the written file matches the schema."""
        destination = tmp_path / "docs" / "api" / "openapi.json"

        schema = export_openapi(create_app(settings), destination)

        assert json.loads(destination.read_text()) == schema
        assert schema["info"]["title"] == settings.app_name
        assert "/pin/login" in schema["paths"]
        assert "/classrooms/{classroom_id}/help/queue" in schema["paths"]
