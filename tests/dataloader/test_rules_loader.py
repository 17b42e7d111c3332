# tests/dataloader/test_rules_loader.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from allocheck.dataloader.rules_loader import RulesLoader
from allocheck.errors import RuleError
from allocheck.schemas.models import CoRunRule, PhaseWindowRule, SlotRestrictionRule


def write_json(tmp_path: Path, payload) -> Path:
    p = tmp_path / "rules.json"
    p.write_text(json.dumps(payload), encoding="utf-8")
    return p


def test_load_plain_rule_list(tmp_path: Path):
    # --- Arrange ---
    path = write_json(
        tmp_path,
        [
            {"type": "coRun", "tasks": ["T1", "T2"]},
            {"type": "slotRestriction", "group": "GroupA", "minCommonSlots": 2},
            {"type": "phaseWindow", "task": "T1", "allowedPhases": [1, 2]},
        ],
    )

    # --- Act ---
    rules = RulesLoader().load(path)

    # --- Assert ---
    assert isinstance(rules[0], CoRunRule) and rules[0].tasks == ["T1", "T2"]
    assert isinstance(rules[1], SlotRestrictionRule) and rules[1].minCommonSlots == 2
    assert isinstance(rules[2], PhaseWindowRule) and rules[2].allowedPhases == [1, 2]


def test_load_exported_object_shape(tmp_path: Path):
    """
    @brief
    The export format {rules, weights, metadata} is accepted; only rules are read.
    """
    payload = {
        "rules": [{"type": "loadLimit", "group": "G", "maxSlotsPerPhase": 3, "priority": 2}],
        "weights": {"priority": 5},
        "metadata": {"exportedAt": "2025-01-01T00:00:00Z"},
    }
    rules = RulesLoader().load(write_json(tmp_path, payload))
    assert len(rules) == 1
    assert rules[0].priority == 2


def test_unknown_rule_type_raises(tmp_path: Path):
    with pytest.raises(RuleError, match="Invalid rule definition"):
        RulesLoader().load(write_json(tmp_path, [{"type": "teleport"}]))


def test_invalid_field_value_raises(tmp_path: Path):
    with pytest.raises(RuleError):
        RulesLoader().load(
            write_json(tmp_path, [{"type": "slotRestriction", "group": "G", "minCommonSlots": 0}])
        )


def test_invalid_json_raises(tmp_path: Path):
    p = tmp_path / "rules.json"
    p.write_text("[{", encoding="utf-8")
    with pytest.raises(RuleError, match="not valid JSON"):
        RulesLoader().load(p)


def test_non_list_payload_raises(tmp_path: Path):
    with pytest.raises(RuleError, match="must be a JSON list"):
        RulesLoader().load(write_json(tmp_path, {"rules": {"type": "coRun"}}))


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(RuleError, match="not found"):
        RulesLoader().load(tmp_path / "nope.json")
