# src/allocheck/validator/validator.py
from __future__ import annotations

import json
import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

# Unified error system
from allocheck.errors import ReportError
from allocheck.schemas.models import RULE_ADAPTER, Config, RangeBounds, Rule
from allocheck.validator.coerce import cell_text, format_number, number_or_default, to_number
from allocheck.validator.listfield import (
    ListFormatError,
    is_blank,
    non_numeric_items,
    parse_list,
)
from allocheck.validator.phases import aggregate_phase_load
from allocheck.validator.rule_graph import build_corun_graph, find_cycle_root
from allocheck.validator.types import (
    ID_FIELDS,
    REQUIRED_COLUMNS,
    Entity,
    RowKey,
    ValidationResult,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


# ----------------------------
# AUXILIARY FUNCTIONS
# ----------------------------
def _snapshot(rows: Iterable[Row] | None) -> list[dict[str, Any]]:
    """
    @brief
    Copy caller-owned rows into plain dicts.

    @details
    The validator works on its own shallow copies so that no reference into
    caller collections survives the call.
    """
    return [dict(row) for row in rows or ()]


def _coerce_rules(rules: Iterable[Rule | Mapping[str, Any]] | None) -> list[Rule]:
    """
    @brief
    Normalize the rule list into typed rule models.

    @details
    Typed rules pass through. Mappings are validated against the rule union;
    a mapping with an unknown `type` or bad fields is skipped with a warning,
    since malformed rules must not abort a validation run.
    """
    typed: list[Rule] = []
    for idx, rule in enumerate(rules or ()):
        if isinstance(rule, BaseModel):
            typed.append(rule)  # type: ignore[arg-type]
            continue
        try:
            typed.append(RULE_ADAPTER.validate_python(rule))
        except PydanticValidationError as e:
            logger.warning(
                "Skipping rule #%d (type=%s): %d schema error(s)",
                idx + 1,
                rule.get("type") if isinstance(rule, Mapping) else type(rule).__name__,
                e.error_count(),
            )
    return typed


# ---------------------------
# VALIDATOR CLASS (instance core)
# ----------------------------
class Validator:
    """
    @brief
    Multi-pass validator for client, worker and task data plus allocation rules.

    @details
    Runs structural (columns, identities), syntactic (lists, ranges, JSON),
    referential (requested tasks, skill coverage) and feasibility (overload,
    concurrency, co-run cycles, phase saturation) checks in a fixed order.
    Every finding is written into one ValidationResult owned by this instance.

    Business-data problems never raise: each pass converts its own parse
    failures into field errors and summary lines, or skips rows whose
    malformed state an earlier pass already reported.
    """

    # ---------- Constructor ----------
    def __init__(
        self,
        clients: Iterable[Row] | None,
        workers: Iterable[Row] | None,
        tasks: Iterable[Row] | None,
        rules: Iterable[Rule | Mapping[str, Any]] | None = None,
        cfg: Config | None = None,
    ) -> None:
        self.clients = _snapshot(clients)
        self.workers = _snapshot(workers)
        self.tasks = _snapshot(tasks)
        self.rules = _coerce_rules(rules)
        self.cfg = cfg or Config()

        self.result = ValidationResult()

    # ---------- Public lifecycle API ----------
    def run_all_checks(self) -> ValidationResult:
        """
        @brief
        Execute the full validation sequence.

        @details
        Call order is the tie-break for message ordering in `summary`, so it
        is fixed: per-entity passes for clients, workers and tasks, then the
        cross-entity passes, then the rule graph and phase saturation.
        """
        ranges = self.cfg.ranges

        # (1) Clients
        self._check_missing_columns("clients", self.clients)
        self._check_duplicate_ids("clients", self.clients)
        self._check_range("clients", self.clients, "PriorityLevel", ranges.priority_level)
        self._check_list_format("clients", self.clients, "RequestedTaskIDs")
        self._check_json_field("clients", self.clients, "AttributesJSON")

        # (2) Workers
        self._check_missing_columns("workers", self.workers)
        self._check_duplicate_ids("workers", self.workers)
        self._check_list_format("workers", self.workers, "Skills")
        self._check_list_format("workers", self.workers, "AvailableSlots", numeric=True)
        self._check_range("workers", self.workers, "MaxLoadPerPhase", ranges.max_load_per_phase)
        self._check_worker_overload()

        # (3) Tasks
        self._check_missing_columns("tasks", self.tasks)
        self._check_duplicate_ids("tasks", self.tasks)
        self._check_list_format("tasks", self.tasks, "RequiredSkills")
        self._check_list_format("tasks", self.tasks, "PreferredPhases", numeric=True)
        self._check_range("tasks", self.tasks, "Duration", ranges.duration)
        self._check_range("tasks", self.tasks, "MaxConcurrent", ranges.max_concurrent)
        self._check_concurrency_feasibility()

        # (4) Cross-entity references
        self._check_requested_tasks()
        self._check_skill_coverage()

        # (5) Rules and capacity
        self._check_corun_cycles()
        self._check_phase_saturation()

        logger.info(
            "Validation finished: clients=%d workers=%d tasks=%d rules=%d -> %d issue(s)",
            len(self.clients),
            len(self.workers),
            len(self.tasks),
            len(self.rules),
            len(self.result.summary),
        )
        return self.result

    def build_report(self) -> dict[str, Any]:
        """
        @brief
        Assemble the validation result into a serializable report.

        @details
        Adds a UTC timestamp and a `valid` flag (no summary entries) to the
        result payload. No files are written at this stage.
        """
        payload = self.result.to_dict()
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "valid": not self.result.has_issues(),
            **payload,
        }

    def save_report(
        self,
        report: dict[str, Any],
        out_dir: Path | None = None,
        filename: str = "validation_report.json",
    ) -> Path:
        """
        Writes the report atomically to disk.

        Args:
            report: Validation report dictionary.
            out_dir: Target directory (defaults to 'data/output').
            filename: Target filename (default 'validation_report.json').

        Returns:
            Path to the written JSON file.
        """
        target_dir = Path(out_dir or "data/output")
        final_path = target_dir / filename
        tmp_path = final_path.with_suffix(".tmp")

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(report, f, indent=2, ensure_ascii=False)
            tmp_path.replace(final_path)
        except OSError as e:
            raise ReportError(
                f"Failed to write validation report: {e}",
                source="Validator.save_report",
                suggested_action="Check disk permissions and free space.",
            ) from e

        logger.info("Validation report saved: %s", final_path)
        return final_path

    # ---------- Helpers ----------
    @staticmethod
    def _row_key(entity: Entity, row: Row, idx: int) -> RowKey:
        """Row identity value, or the positional index when the ID is absent."""
        value = row.get(ID_FIELDS[entity])
        if is_blank(value):
            return idx
        return cell_text(value)

    # ---------- Per-entity checks ----------
    def _check_missing_columns(self, entity: Entity, rows: list[dict[str, Any]]) -> None:
        """
        @brief
        Verify required columns are present (schema check).

        @details
        The schema is inferred from the first row's keys only and every row is
        marked for each column missing there. Rows are assumed homogeneous.
        """
        if not rows:
            return

        actual = set(rows[0].keys())
        missing = [col for col in REQUIRED_COLUMNS[entity] if col not in actual]
        if not missing:
            return

        self.result.add_summary(f"{entity}: Missing required columns: {', '.join(missing)}")
        for idx, row in enumerate(rows):
            key = self._row_key(entity, row, idx)
            for col in missing:
                self.result.set_error(entity, key, col, "Required column missing")

    def _check_duplicate_ids(self, entity: Entity, rows: list[dict[str, Any]]) -> None:
        """
        @brief
        Detect duplicate identity values within one entity.

        @details
        Rows with an empty identity are not grouped. One summary line is
        emitted per duplicated value, listing 1-based row numbers.
        """
        id_field = ID_FIELDS[entity]

        # (1) Group row indices by identity value
        positions: dict[str, list[int]] = defaultdict(list)
        for idx, row in enumerate(rows):
            value = row.get(id_field)
            if is_blank(value):
                continue
            positions[cell_text(value)].append(idx)

        # (2) Report each duplicated value once, mark every participating row
        for value, indices in positions.items():
            if len(indices) < 2:
                continue
            row_numbers = ", ".join(str(i + 1) for i in indices)
            self.result.add_summary(
                f"{entity}: Duplicate {id_field} '{value}' found in rows {row_numbers}"
            )
            for idx in indices:
                key = self._row_key(entity, rows[idx], idx)
                self.result.set_error(entity, key, id_field, f"Duplicate {id_field}: {value}")

    def _check_list_format(
        self, entity: Entity, rows: list[dict[str, Any]], column: str, numeric: bool = False
    ) -> None:
        """
        @brief
        Validate a list-valued field (JSON array or comma-delimited).

        @details
        A JSON array that does not parse is reported as malformed and the
        field is not checked further. With `numeric`, every element must be
        all digits; offending tokens are reported together in one message.
        """
        for idx, row in enumerate(rows):
            value = row.get(column)
            if is_blank(value):
                continue
            key = self._row_key(entity, row, idx)

            # (1) Structural parse
            try:
                items = parse_list(value)
            except ListFormatError:
                self.result.set_error(entity, key, column, "Invalid list format")
                self.result.add_summary(f"{entity}: Row {idx + 1} has malformed list in {column}")
                continue

            # (2) Element-level numeric check
            if not numeric:
                continue
            bad = non_numeric_items(items)
            if bad:
                tokens = ", ".join(bad)
                self.result.set_error(entity, key, column, f"Non-numeric values: {tokens}")
                self.result.add_summary(
                    f"{entity}: Row {idx + 1} has non-numeric values in {column}: {tokens}"
                )

    def _check_range(
        self, entity: Entity, rows: list[dict[str, Any]], column: str, bounds: RangeBounds
    ) -> None:
        """
        @brief
        Validate that a numeric field lies within a closed interval.

        @details
        Absent values are skipped; presence is the schema check's concern.
        Values that do not coerce to a number fail like out-of-range ones.
        """
        lo, hi = format_number(bounds.min), format_number(bounds.max)
        for idx, row in enumerate(rows):
            value = row.get(column)
            if value is None or value == "":
                continue
            number = to_number(value)
            if math.isnan(number) or number < bounds.min or number > bounds.max:
                key = self._row_key(entity, row, idx)
                self.result.set_error(entity, key, column, f"Value must be between {lo} and {hi}")
                self.result.add_summary(
                    f"{entity}: Row {idx + 1} {column} value {cell_text(value)} is out of range "
                    f"[{lo}, {hi}]"
                )

    def _check_json_field(self, entity: Entity, rows: list[dict[str, Any]], column: str) -> None:
        """
        @brief
        Validate that a free-form attribute field holds parseable JSON.
        """
        for idx, row in enumerate(rows):
            value = row.get(column)
            if is_blank(value) or not isinstance(value, str):
                # Non-string values were already decoded upstream.
                continue
            try:
                json.loads(value)
            except (ValueError, RecursionError):
                key = self._row_key(entity, row, idx)
                self.result.set_error(entity, key, column, "Invalid JSON format")
                self.result.add_summary(f"{entity}: Row {idx + 1} has invalid JSON in {column}")

    # ---------- Capacity feasibility ----------
    def _check_worker_overload(self) -> None:
        """
        @brief
        Flag workers whose MaxLoadPerPhase exceeds their available slot count.

        @details
        Every list entry counts as a slot, including non-numeric tokens the
        list checker has already reported. Workers with blank AvailableSlots
        or a broken JSON array are skipped.
        """
        for idx, worker in enumerate(self.workers):
            raw = worker.get("AvailableSlots")
            if is_blank(raw):
                continue
            try:
                slots = parse_list(raw)
            except ListFormatError:
                continue

            max_load = number_or_default(worker.get("MaxLoadPerPhase"))
            if len(slots) < max_load:
                key = self._row_key("workers", worker, idx)
                self.result.set_error(
                    "workers",
                    key,
                    "MaxLoadPerPhase",
                    f"Max load ({format_number(max_load)}) exceeds available slots ({len(slots)})",
                )
                self.result.add_summary(f"workers: Row {idx + 1} worker is overloaded")

    def _worker_skill_sets(self) -> list[set[str]]:
        # Workers whose Skills do not parse contribute an empty set.
        skill_sets: list[set[str]] = []
        for worker in self.workers:
            raw = worker.get("Skills")
            skills: set[str] = set()
            if not is_blank(raw):
                try:
                    skills = {s.strip() for s in parse_list(raw) if s.strip()}
                except ListFormatError:
                    pass
            skill_sets.append(skills)
        return skill_sets

    def _check_concurrency_feasibility(self) -> None:
        """
        @brief
        Flag tasks whose MaxConcurrent exceeds the number of qualified workers.

        @details
        A worker is qualified when it shares at least one skill with the
        task's RequiredSkills.
        """
        worker_skills = self._worker_skill_sets()

        for idx, task in enumerate(self.tasks):
            raw = task.get("RequiredSkills")
            if is_blank(raw):
                continue
            try:
                required = {s.strip() for s in parse_list(raw) if s.strip()}
            except ListFormatError:
                continue

            qualified = sum(1 for skills in worker_skills if skills & required)
            max_concurrent = number_or_default(task.get("MaxConcurrent"))
            if qualified < max_concurrent:
                key = self._row_key("tasks", task, idx)
                self.result.set_error(
                    "tasks",
                    key,
                    "MaxConcurrent",
                    f"Max concurrent ({format_number(max_concurrent)}) "
                    f"exceeds qualified workers ({qualified})",
                )
                self.result.add_summary(f"tasks: Row {idx + 1} max concurrency not feasible")

    # ---------- Cross-entity references ----------
    def _check_requested_tasks(self) -> None:
        """
        @brief
        Every TaskID requested by a client must exist among tasks.

        @details
        One summary line per unknown ID; the client's field error accumulates
        one clause per unknown ID.
        """
        known = {str(t.get("TaskID")).strip() for t in self.tasks if not is_blank(t.get("TaskID"))}

        for idx, client in enumerate(self.clients):
            raw = client.get("RequestedTaskIDs")
            if is_blank(raw):
                continue
            try:
                requested = parse_list(raw)
            except ListFormatError:
                continue  # reported by the list checker

            key = self._row_key("clients", client, idx)
            for task_id in (t.strip() for t in requested):
                if not task_id or task_id in known:
                    continue
                self.result.append_error(
                    "clients", key, "RequestedTaskIDs", f"Unknown task ID: {task_id}"
                )
                self.result.add_summary(f"clients: Row {idx + 1} requests unknown task '{task_id}'")

    def _check_skill_coverage(self) -> None:
        """
        @brief
        Every RequiredSkill of a task must be held by at least one worker.
        """
        available: set[str] = set().union(*self._worker_skill_sets())

        for idx, task in enumerate(self.tasks):
            raw = task.get("RequiredSkills")
            if is_blank(raw):
                continue
            try:
                required = parse_list(raw)
            except ListFormatError:
                continue

            key = self._row_key("tasks", task, idx)
            for skill in (s.strip() for s in required):
                if not skill or skill in available:
                    continue
                self.result.append_error(
                    "tasks", key, "RequiredSkills", f"No worker with skill: {skill}"
                )
                self.result.add_summary(
                    f"tasks: Row {idx + 1} requires skill '{skill}' not found in any worker"
                )

    # ---------- Rules and phases ----------
    def _check_corun_cycles(self) -> None:
        """
        @brief
        Detect circular dependencies among co-run rules.

        @details
        Reports only the first cycle found, naming the task the search
        started from, plus one generic suggestion.
        """
        graph = build_corun_graph(self.rules)
        logger.debug("Co-run graph: %d task(s)", len(graph))

        root = find_cycle_root(graph, count_pair_as_cycle=self.cfg.rule_graph.count_pair_as_cycle)
        if root is not None:
            self.result.add_summary(f"Circular co-run dependency detected involving task {root}")
            self.result.add_suggestion("Review co-run rules to eliminate circular dependencies")

    def _check_phase_saturation(self) -> None:
        """
        @brief
        Flag phases whose aggregated demand exceeds aggregated capacity.
        """
        for phase, load in aggregate_phase_load(self.workers, self.tasks).items():
            if not load.oversaturated:
                continue
            self.result.add_summary(
                f"Phase {phase} is oversaturated: {format_number(load.used)} slots needed, "
                f"{format_number(load.total)} available"
            )
            self.result.add_suggestion(
                f"Consider reducing task durations or adding more workers for phase {phase}"
            )


# ----------------------------
# THIN FACADES
# ----------------------------
def validate_all_data(
    clients: Sequence[Row] | None,
    workers: Sequence[Row] | None,
    tasks: Sequence[Row] | None,
    rules: Sequence[Rule | Mapping[str, Any]] | None = None,
    cfg: Config | None = None,
) -> ValidationResult:
    """
    @brief
    Engine entry point: validate one snapshot of entities and rules.

    @details
    Builds a fresh ValidationResult on every call. Identical inputs yield
    identical results; nothing is retained between calls.
    """
    return Validator(clients, workers, tasks, rules, cfg).run_all_checks()


def validate_entities(
    clients: Sequence[Row] | None,
    workers: Sequence[Row] | None,
    tasks: Sequence[Row] | None,
    rules: Sequence[Rule | Mapping[str, Any]] | None = None,
    cfg: Config | None = None,
    *,
    write_report: bool = True,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> tuple[ValidationResult, dict[str, Any]]:
    """
    @brief
    High-level convenience wrapper: validate and optionally persist the report.

    @returns
        The ValidationResult and the report dictionary (always returned,
        regardless of write mode).
    """
    # (1) Run the full validation sequence
    validator = Validator(clients, workers, tasks, rules, cfg)
    result = validator.run_all_checks()

    # (2) Build report and optionally persist it
    report = validator.build_report()
    if write_report:
        validator.save_report(report, out_dir=out_dir, filename=filename)

    return result, report
