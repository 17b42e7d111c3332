import json
from pathlib import Path

from scripts.gen_schemas import main


def test_gen_schemas_writes_config_and_rules(tmp_path: Path):
    # --- Act ---
    main(tmp_path / "schemas")

    # --- Assert ---
    config_schema = json.loads((tmp_path / "schemas" / "config.schema.json").read_text("utf-8"))
    rules_schema = json.loads((tmp_path / "schemas" / "rules.schema.json").read_text("utf-8"))
    assert "ranges" in config_schema["properties"]
    assert rules_schema["type"] == "array"
    assert "coRun" in json.dumps(rules_schema)
