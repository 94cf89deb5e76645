"""Tests for scripts/export_openapi.py."""

import json

from scripts.export_openapi import export_schema, main


def test_export_schema_writes_haiku_route(tmp_path):
    out = export_schema(tmp_path / "docs" / "openapi.json")

    schema = json.loads(out.read_text(encoding="utf-8"))
    assert "/haiku" in schema["paths"]
    assert "post" in schema["paths"]["/haiku"]
    assert "HaikuRequest" in schema["components"]["schemas"]


def test_main_accepts_output_flag(tmp_path, capsys):
    target = tmp_path / "schema.json"

    assert main(["--output", str(target)]) == 0
    assert target.exists()
    assert "Wrote OpenAPI schema" in capsys.readouterr().out
