"""
Audit State Tracker — advances audit counters on catalog nodes and sprint snapshots.
"""

from __future__ import annotations

from typing import TypeVar

from requirement_audit.models.schemas import Requirement, SprintRequirement

AuditedT = TypeVar("AuditedT", Requirement, SprintRequirement)


def mark_audited(
    items: list[AuditedT],
    requirement_ids: list[str],
    sprint_number: int,
) -> tuple[list[AuditedT], int]:
    """
    Increment ``n_audit`` and set ``last_audit_sprint`` on every matching item.
    Returns the updated copies and how many matched.  Repeated calls
    increment again.
    """
    targets = set(requirement_ids)
    updated: list[AuditedT] = []
    count = 0
    for item in items:
        if item.id in targets:
            item = item.model_copy(update={
                "n_audit": item.n_audit + 1,
                "last_audit_sprint": sprint_number,
            })
            count += 1
        updated.append(item)
    return updated, count
