"""
Audit Eligibility Engine — which requirements may enter the next audit cycle.

Rules for a non-container requirement R:
  • no children                → eligible
  • children                   → every child must have n_audit == R.n_audit - 1
  • dependencies, R audited    → additionally every dependency must have
                                 n_audit == R.n_audit - 1
  • dependencies, R unaudited  → dependencies are not checked (first audit)

Anything referenced but absent counts as "not satisfied".
"""

from __future__ import annotations

import logging

from requirement_audit.engine.hierarchy import index_by_id
from requirement_audit.models.schemas import Requirement

logger = logging.getLogger(__name__)

DEFAULT_PROPOSAL_SIZE = 10


def _one_cycle_behind(
    ids: list[str],
    by_id: dict[str, Requirement],
    n_audit: int,
) -> bool:
    for req_id in ids:
        other = by_id.get(req_id)
        if other is None or other.n_audit != n_audit - 1:
            return False
    return True


def is_auditable(req: Requirement, by_id: dict[str, Requirement]) -> bool:
    """Apply the parent/child and dependency ordering rules to one requirement."""
    if req.is_container:
        return False

    eligible = _one_cycle_behind(req.children_ids, by_id, req.n_audit)

    # Dependency gating only applies from the second cycle onward.
    if req.dependencies and req.n_audit > 0:
        eligible = eligible and _one_cycle_behind(req.dependencies, by_id, req.n_audit)

    return eligible


def auditable_requirements(requirements: list[Requirement]) -> list[Requirement]:
    """Every eligible requirement, in input order."""
    by_id = index_by_id(requirements)
    return [req for req in requirements if is_auditable(req, by_id)]


def rank_by_risk(
    requirements: list[Requirement],
    reqs_to_avoid: list[str] | None = None,
    limit: int = DEFAULT_PROPOSAL_SIZE,
) -> list[Requirement]:
    """Highest risk first (stable), avoided ids removed, truncated to ``limit``."""
    avoid = set(reqs_to_avoid or [])
    ranked = sorted(requirements, key=lambda r: r.risk, reverse=True)
    return [req for req in ranked if req.id not in avoid][:limit]


def select_for_audit(
    requirements: list[Requirement],
    reqs_to_avoid: list[str] | None = None,
    limit: int = DEFAULT_PROPOSAL_SIZE,
) -> tuple[list[Requirement], int]:
    """
    Propose the next audit batch for one catalog.
    Returns (proposal, eligible count before avoidance and truncation).
    """
    eligible = auditable_requirements(requirements)
    proposal = rank_by_risk(eligible, reqs_to_avoid, limit)
    logger.debug(
        f"Eligibility: {len(eligible)}/{len(requirements)} eligible, "
        f"{len(proposal)} proposed"
    )
    return proposal, len(eligible)


def rank_all_by_risk(
    requirements: list[Requirement],
    reqs_to_avoid: list[str] | None = None,
    limit: int = DEFAULT_PROPOSAL_SIZE,
) -> list[Requirement]:
    """Coarse cross-catalog ranking: any requirement with risk > 0, no gating."""
    scored = [req for req in requirements if req.risk > 0]
    return rank_by_risk(scored, reqs_to_avoid, limit)
