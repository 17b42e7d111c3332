# scripts/gen_schemas.py
"""
Generate JSON Schemas for Allocheck data models.

This script exports JSON Schema files for:
    - Config (config.yaml)
    - Rule catalog (rules.json, a list of tagged rule objects)

Output directory: schemas/
"""

import json
from pathlib import Path
from typing import Any

from allocheck.schemas.models import RULE_LIST_ADAPTER, Config


def export_schema(schema: dict[str, Any], name: str, out_dir: Path) -> Path:
    """
    @brief
    Writes one JSON schema document as "<name>.schema.json".

    @returns
        Path of the written schema file.
    """
    # (1) Ensure output directory exists
    out_dir.mkdir(parents=True, exist_ok=True)
    schema_path = (out_dir / f"{name}.schema.json").resolve()

    # (2) Serialize with indentation and final newline
    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
        f.write("\n")

    try:
        rel = schema_path.relative_to(Path.cwd())
    except ValueError:
        rel = schema_path
    print(f"Generated {rel}")
    return schema_path


def main(out_dir: Path | None = None) -> None:
    out_dir = (out_dir or Path("schemas")).resolve()
    export_schema(Config.model_json_schema(), "config", out_dir)
    export_schema(RULE_LIST_ADAPTER.json_schema(), "rules", out_dir)


if __name__ == "__main__":
    main()
