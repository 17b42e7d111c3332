# src/allocheck/dataloader/rules_loader.py
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from allocheck.errors import RuleError
from allocheck.schemas.models import Rule, parse_rules

logger = logging.getLogger(__name__)


class RulesLoader:
    """
    @brief
    Loader for the allocation rule catalog (rules.json).

    @details
    Accepts either a bare JSON list of rules or the exported object shape
    `{"rules": [...], "weights": {...}, "metadata": {...}}`; only `rules` is
    read. Unlike the validator, which skips malformed rules, the loader is
    strict: any schema violation raises `RuleError` so the user can fix the
    file before a run.
    """

    def load(self, path: Path) -> list[Rule]:
        data = self._read_json(path)
        rules = self._validate(self._extract_rules(data))
        logger.info("RulesLoader: %d rule(s) from %s", len(rules), path)
        return rules

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            raise RuleError(
                message=f"Rules file not found: {path}",
                source="RulesLoader._read_json",
                suggested_action="Verify the rules.json path or omit --rules.",
            )
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise RuleError(
                message=f"Rules file is not valid JSON: {e}",
                source="RulesLoader._read_json",
                suggested_action="Re-export the rules or fix the JSON syntax.",
            ) from e
        except OSError as e:
            raise RuleError(
                message=f"Unable to read rules file: {e}",
                source="RulesLoader._read_json",
                suggested_action="Check file permissions.",
            ) from e

    def _extract_rules(self, data: Any) -> list[Any]:
        if isinstance(data, Mapping):
            data = data.get("rules", [])
        if not isinstance(data, list):
            raise RuleError(
                message=f"Rules must be a JSON list, got {type(data).__name__}",
                source="RulesLoader._extract_rules",
                suggested_action='Provide a list of rules or an object with a "rules" list.',
            )
        return data

    def _validate(self, data: list[Any]) -> list[Rule]:
        try:
            return parse_rules(data)
        except ValidationError as e:
            raise RuleError(
                message=f"Invalid rule definition(s): {e}",
                source="RulesLoader._validate",
                suggested_action=(
                    "Each rule needs a known 'type' (coRun, slotRestriction, loadLimit, "
                    "phaseWindow, patternMatch, precedenceOverride) and its fields."
                ),
            ) from e


__all__ = ["RulesLoader"]
