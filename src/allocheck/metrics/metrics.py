# src/allocheck/metrics/metrics.py
from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from allocheck.errors import DataError
from allocheck.validator.phases import aggregate_phase_load
from allocheck.validator.types import ENTITIES, ValidationResult

_ERROR_COLUMNS = ["entity", "row", "field", "message"]


def collect_metrics(
    result: ValidationResult,
    clients: Sequence[Mapping[str, Any]],
    workers: Sequence[Mapping[str, Any]],
    tasks: Sequence[Mapping[str, Any]],
) -> dict[str, Any]:
    """
    @brief
    Builds a JSON-serializable dictionary of data-quality metrics for one run.

    @details
    Flattens the per-cell error map into a long DataFrame
    (entity, row, field, message) and aggregates it:
        - rows per entity and rows carrying at least one field error;
        - field error counts per entity and field;
        - counts of summary lines, suggestions and oversaturated phases.
    """
    if not isinstance(result, ValidationResult):
        raise DataError(
            f"Expected ValidationResult, got {type(result).__name__}",
            source="metrics.collect_metrics",
            suggested_action="Pass the object returned by validate_all_data().",
        )

    # (1) Long-format error table
    df = _errors_dataframe(result)

    # (2) Per-entity row and error counts
    totals = {"clients": len(clients), "workers": len(workers), "tasks": len(tasks)}
    entities: dict[str, Any] = {}
    for entity in ENTITIES:
        sub = df[df["entity"] == entity]
        field_counts = sub.groupby("field").size().sort_index()
        entities[entity] = {
            "rows": int(totals[entity]),
            "rows_with_errors": int(sub["row"].nunique()),
            "field_errors": {str(k): int(v) for k, v in field_counts.items()},
        }

    # (3) Phase capacity overview
    phases = aggregate_phase_load(workers, tasks)
    oversaturated = [phase for phase, load in phases.items() if load.oversaturated]

    metrics = {
        "timestamp": _utc_now_iso(),
        "valid": not result.has_issues(),
        "num_issues": len(result.summary),
        "num_suggestions": len(result.suggestions),
        "num_field_errors": int(len(df)),
        "entities": entities,
        "phases": {
            "count": len(phases),
            "oversaturated": oversaturated,
        },
    }

    # (4) Serializability guard
    json.dumps(metrics, ensure_ascii=False)
    return metrics


# ----------------- internal -----------------


def _errors_dataframe(result: ValidationResult) -> pd.DataFrame:
    records = [
        {"entity": entity, "row": str(key), "field": column, "message": message}
        for entity, rows in result.errors.items()
        for key, fields in rows.items()
        for column, message in fields.items()
    ]
    return pd.DataFrame.from_records(records, columns=_ERROR_COLUMNS)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
