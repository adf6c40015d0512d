"""
Structural metrics used as risk inputs: sibling counts and descendant counts.
"""

from __future__ import annotations

from collections import Counter

from requirement_audit.engine.hierarchy import index_by_id
from requirement_audit.models.schemas import Requirement


def sibling_counts(requirements: list[Requirement]) -> dict[str, int]:
    """
    Number of *other* nodes sharing the same parent.
    Only existing, non-container parents count; everything else gets 0.
    """
    by_id = index_by_id(requirements)

    def counted_parent(req: Requirement) -> str | None:
        if not req.parent_id:
            return None
        parent = by_id.get(req.parent_id)
        if parent is None or parent.is_container:
            return None
        return parent.id

    children_per_parent = Counter(
        parent_id
        for parent_id in (counted_parent(req) for req in requirements)
        if parent_id is not None
    )

    counts: dict[str, int] = {}
    for req in requirements:
        parent_id = counted_parent(req)
        counts[req.id] = children_per_parent[parent_id] - 1 if parent_id else 0
    return counts


def descendant_counts(requirements: list[Requirement]) -> dict[str, int]:
    """
    Total descendants per node: direct children plus each child's own total.
    Children are resolved through ``children_ids``; dangling ids are skipped.
    """
    by_id = index_by_id(requirements)
    memo: dict[str, int] = {}

    def count(req_id: str, path: frozenset[str]) -> int:
        if req_id in memo:
            return memo[req_id]
        total = 0
        for child_id in by_id[req_id].children_ids:
            if child_id not in by_id or child_id in path:
                continue
            total += 1 + count(child_id, path | {child_id})
        memo[req_id] = total
        return total

    for req in requirements:
        count(req.id, frozenset({req.id}))
    return memo


def apply_structural_metrics(requirements: list[Requirement]) -> list[Requirement]:
    """Return copies of ``requirements`` with sibling and descendant counts refreshed."""
    siblings = sibling_counts(requirements)
    descendants = descendant_counts(requirements)
    return [
        req.model_copy(update={
            "sibling_count": siblings[req.id],
            "descendant_count": descendants[req.id],
        })
        for req in requirements
    ]
