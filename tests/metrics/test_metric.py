# tests/metrics/test_metric.py
from __future__ import annotations

import json

import pytest

from allocheck.errors import DataError
from allocheck.metrics.metrics import collect_metrics
from allocheck.validator.types import ValidationResult
from allocheck.validator.validator import validate_all_data

CLIENTS = [
    {
        "ClientID": "C1",
        "ClientName": "Acme",
        "PriorityLevel": "9",
        "RequestedTaskIDs": "T1,T7",
        "GroupTag": "G",
        "AttributesJSON": "{}",
    },
    {
        "ClientID": "C2",
        "ClientName": "Beta",
        "PriorityLevel": "2",
        "RequestedTaskIDs": "T1",
        "GroupTag": "G",
        "AttributesJSON": "{}",
    },
]
WORKERS = [
    {
        "WorkerID": "W1",
        "WorkerName": "Ann",
        "Skills": "coding",
        "AvailableSlots": "1",
        "MaxLoadPerPhase": "1",
        "WorkerGroup": "G",
        "QualificationLevel": "3",
    }
]
TASKS = [
    {
        "TaskID": "T1",
        "TaskName": "Build",
        "Category": "Dev",
        "Duration": "4",
        "RequiredSkills": "coding",
        "PreferredPhases": "1",
        "MaxConcurrent": "1",
    }
]


def test_collect_metrics_counts_errors_per_entity_and_field():
    """
    @brief
    Field errors are aggregated per entity and field; rows counted once.

    @details
    C1 has two faulty fields (PriorityLevel, RequestedTaskIDs); phase 1 is
    oversaturated (demand 4 vs. capacity 1).
    """
    # --- Arrange ---
    result = validate_all_data(CLIENTS, WORKERS, TASKS)

    # --- Act ---
    metrics = collect_metrics(result, CLIENTS, WORKERS, TASKS)

    # --- Assert ---
    clients = metrics["entities"]["clients"]
    assert clients["rows"] == 2
    assert clients["rows_with_errors"] == 1
    assert clients["field_errors"] == {"PriorityLevel": 1, "RequestedTaskIDs": 1}
    assert metrics["entities"]["workers"] == {"rows": 1, "rows_with_errors": 0, "field_errors": {}}
    assert metrics["num_field_errors"] == 2
    assert metrics["num_issues"] == len(result.summary)
    assert metrics["phases"] == {"count": 1, "oversaturated": [1]}
    assert metrics["valid"] is False
    json.dumps(metrics)


def test_collect_metrics_on_clean_result():
    metrics = collect_metrics(ValidationResult(), [], [], [])
    assert metrics["valid"] is True
    assert metrics["num_field_errors"] == 0
    assert metrics["entities"]["tasks"]["rows_with_errors"] == 0
    assert metrics["phases"] == {"count": 0, "oversaturated": []}


def test_collect_metrics_rejects_foreign_objects():
    with pytest.raises(DataError):
        collect_metrics({"summary": []}, [], [], [])  # type: ignore[arg-type]
