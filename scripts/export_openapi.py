"""Export the FastAPI OpenAPI schema to docs/openapi.json."""
from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SCHEMA_PATH = ROOT / "docs" / "openapi.json"

# Schema export never calls Bedrock; a region keeps boto3 quiet if a client is built
os.environ.setdefault("AWS_REGION", "us-east-1")


def export_schema(output_path: Path) -> Path:
    from commit_haiku.main import app  # Imported lazily after env defaults are in place

    schema = app.openapi()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(schema, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return output_path


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export OpenAPI schema for the Commit Haiku API")
    parser.add_argument(
        "--output",
        type=Path,
        default=SCHEMA_PATH,
        help="Destination file for the OpenAPI document (default: docs/openapi.json)",
    )
    args = parser.parse_args(argv)

    output_path = export_schema(args.output.resolve())
    try:
        shown = output_path.relative_to(ROOT)
    except ValueError:
        shown = output_path
    print(f"Wrote OpenAPI schema to {shown}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
