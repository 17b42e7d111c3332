# src/allocheck/validator/rule_graph.py
from __future__ import annotations

import logging
from collections.abc import Iterable

from allocheck.schemas.models import CoRunRule, Rule

logger = logging.getLogger(__name__)


def build_corun_graph(rules: Iterable[Rule]) -> dict[str, list[str]]:
    """
    @brief
    Build the task adjacency graph induced by co-run rules.

    @details
    Only `CoRunRule` instances contribute. Each co-run group is expanded into
    a clique: every task is linked to every other task of the same group, in
    both directions. Edges from different rules are merged into one global
    graph, duplicates dropped. Node and neighbour order follow first
    appearance, so traversal is deterministic.

    @returns
        Mapping task ID -> ordered list of adjacent task IDs.
    """
    graph: dict[str, list[str]] = {}
    for rule in rules:
        if not isinstance(rule, CoRunRule):
            continue
        for task in rule.tasks:
            neighbours = graph.setdefault(task, [])
            for other in rule.tasks:
                if other != task and other not in neighbours:
                    neighbours.append(other)
    return graph


def find_cycle_root(graph: dict[str, list[str]], count_pair_as_cycle: bool = False) -> str | None:
    """
    @brief
    Return the DFS root task of the first cycle found, or None.

    @details
    Iterative depth-first search with a visited set and an active-path set.
    An edge to a task on the active path closes a cycle. The edge leading
    straight back to the DFS parent is ignored unless `count_pair_as_cycle`
    is set, in which case A→B→A already counts (degenerate two-task cycle).
    Scanning stops at the first cycle; roots are tried in graph order.
    """
    visited: set[str] = set()

    for root in graph:
        if root in visited:
            continue

        # (1) Explicit stack of (task, parent, neighbour iterator)
        on_path: set[str] = {root}
        visited.add(root)
        stack: list[tuple[str, str | None, Iterable[str]]] = [
            (root, None, iter(graph.get(root, ())))
        ]

        while stack:
            task, parent, neighbours = stack[-1]
            advanced = False
            for nxt in neighbours:
                if nxt in on_path:
                    if nxt == parent and not count_pair_as_cycle:
                        continue
                    logger.debug("Co-run cycle closed by edge %s -> %s", task, nxt)
                    return root
                if nxt in visited:
                    continue
                # (2) Descend into an unvisited neighbour
                visited.add(nxt)
                on_path.add(nxt)
                stack.append((nxt, task, iter(graph.get(nxt, ()))))
                advanced = True
                break

            # (3) All neighbours explored: leave the active path
            if not advanced:
                stack.pop()
                on_path.discard(task)

    return None
