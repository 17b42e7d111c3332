# src/allocheck/validator/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Entity = Literal["clients", "workers", "tasks"]
RowKey = str | int

ENTITIES: tuple[Entity, ...] = ("clients", "workers", "tasks")

# Identity field per entity, used as the row key for reported errors.
ID_FIELDS: dict[Entity, str] = {
    "clients": "ClientID",
    "workers": "WorkerID",
    "tasks": "TaskID",
}

REQUIRED_COLUMNS: dict[Entity, tuple[str, ...]] = {
    "clients": (
        "ClientID",
        "ClientName",
        "PriorityLevel",
        "RequestedTaskIDs",
        "GroupTag",
        "AttributesJSON",
    ),
    "workers": (
        "WorkerID",
        "WorkerName",
        "Skills",
        "AvailableSlots",
        "MaxLoadPerPhase",
        "WorkerGroup",
        "QualificationLevel",
    ),
    "tasks": (
        "TaskID",
        "TaskName",
        "Category",
        "Duration",
        "RequiredSkills",
        "PreferredPhases",
        "MaxConcurrent",
    ),
}


def _empty_errors() -> dict[Entity, dict[RowKey, dict[str, str]]]:
    return {entity: {} for entity in ENTITIES}


@dataclass(slots=True)
class ValidationResult:
    """
    Outcome of one validation run.

    Fields:
        errors: entity -> row key -> field -> message. Last write wins unless
                the message is accumulated via append_error().
        summary: Human-readable problem lines, in check-execution order.
        suggestions: Remediation hints (rule cycles, phase saturation).
    """

    errors: dict[Entity, dict[RowKey, dict[str, str]]] = field(default_factory=_empty_errors)
    summary: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def set_error(self, entity: Entity, key: RowKey, column: str, message: str) -> None:
        self.errors[entity].setdefault(key, {})[column] = message

    def append_error(
        self, entity: Entity, key: RowKey, column: str, message: str, sep: str = "; "
    ) -> None:
        """Grow the field message by one clause instead of overwriting it."""
        row = self.errors[entity].setdefault(key, {})
        previous = row.get(column)
        row[column] = f"{previous}{sep}{message}" if previous else message

    def add_summary(self, line: str) -> None:
        self.summary.append(line)

    def add_suggestion(self, line: str) -> None:
        self.suggestions.append(line)

    def has_issues(self) -> bool:
        return bool(self.summary)

    def to_dict(self) -> dict[str, Any]:
        # JSON object keys must be strings; positional row keys become "0", "1", ...
        # A positional key can collide with a row whose ID reads the same, so
        # field maps sharing a string key are merged in insertion order.
        errors: dict[str, dict[str, dict[str, str]]] = {}
        for entity, rows in self.errors.items():
            merged = errors.setdefault(entity, {})
            for key, fields in rows.items():
                merged.setdefault(str(key), {}).update(fields)
        return {
            "errors": errors,
            "summary": list(self.summary),
            "suggestions": list(self.suggestions),
        }
