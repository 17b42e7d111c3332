# src/allocheck/validator/phases.py
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from allocheck.validator.coerce import number_or_default
from allocheck.validator.listfield import ListFormatError, is_blank, parse_int_list


@dataclass(slots=True)
class PhaseLoad:
    """Aggregated capacity (`total`) and demand (`used`) of one phase."""

    total: float = 0.0
    used: float = 0.0

    @property
    def oversaturated(self) -> bool:
        return self.used > self.total


def aggregate_phase_load(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> dict[int, PhaseLoad]:
    """
    @brief
    Aggregate per-phase capacity vs. demand.

    @details
    (1) Every worker adds its full MaxLoadPerPhase (default 1) to `total` of
        each phase listed in AvailableSlots. A worker available in three
        phases thus contributes its load three times.
    (2) Every task adds its Duration (default 1) to `used` of each phase in
        PreferredPhases, but only for phases some worker made available.
    Rows whose list field is blank or holds a broken JSON array are skipped;
    non-digit entries inside a list are ignored, the remaining phases count.

    @returns
        Mapping phase -> PhaseLoad, sorted by phase number.
    """
    phases: dict[int, PhaseLoad] = {}

    # (1) Capacity contributed by workers
    for worker in workers:
        slots = _phases_of(worker.get("AvailableSlots"))
        if slots is None:
            continue
        load = number_or_default(worker.get("MaxLoadPerPhase"))
        for phase in slots:
            phases.setdefault(phase, PhaseLoad()).total += load

    # (2) Demand contributed by tasks
    for task in tasks:
        preferred = _phases_of(task.get("PreferredPhases"))
        if preferred is None:
            continue
        duration = number_or_default(task.get("Duration"))
        for phase in preferred:
            if phase in phases:
                phases[phase].used += duration

    return dict(sorted(phases.items()))


def _phases_of(value: Any) -> list[int] | None:
    if is_blank(value):
        return None
    try:
        return parse_int_list(value)
    except ListFormatError:
        return None
