"""
Risk Engine — bounded [0, 100] audit-priority score per requirement.

Importance dominates the score; sibling crowding (log curve), nesting depth
(power curve) and dependency load add secondary pressure.  The sum is
inflated by the number of sprints since the last audit and halved once the
requirement has been audited at least once.  Containers always score 0.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel

from requirement_audit.engine.hierarchy import index_by_id
from requirement_audit.engine.metrics import apply_structural_metrics
from requirement_audit.models.schemas import Requirement

logger = logging.getLogger(__name__)


class RiskConfig(BaseModel):
    """Weights and normalisation caps for the risk formula."""
    importance_weight: float = 0.50
    siblings_weight: float = 0.20
    depth_weight: float = 0.20
    dependencies_weight: float = 0.10

    max_siblings: int = 50
    max_depth: int = 8
    max_dependencies: int = 15
    max_cycles: int = 20

    depth_exponent: float = 1.5
    freshness_step: float = 0.15
    audit_penalty: float = 0.5


DEFAULT_RISK_CONFIG = RiskConfig()


def calculate_risk(
    req: Requirement,
    current_sprint: int,
    depth: int,
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> float:
    """Score a single requirement.  ``sibling_count`` must already be current."""
    if req.is_container:
        return 0.0

    norm_importance = req.important / 100
    norm_siblings = min(req.sibling_count / config.max_siblings, 1)
    norm_depth = min(depth / config.max_depth, 1)
    norm_dependencies = min(len(req.dependencies) / config.max_dependencies, 1)

    importance_factor = config.importance_weight * norm_importance
    siblings_factor = config.siblings_weight * math.log10(norm_siblings * 99 + 1)
    depth_factor = config.depth_weight * norm_depth ** config.depth_exponent
    dependencies_factor = config.dependencies_weight * norm_dependencies

    cycles = current_sprint - (req.last_audit_sprint or 0)
    cycles = max(min(cycles, config.max_cycles), 0)
    freshness_factor = 1 + config.freshness_step * cycles

    raw_risk = (
        importance_factor + siblings_factor + depth_factor + dependencies_factor
    ) * freshness_factor
    penalty = config.audit_penalty if req.n_audit > 0 else 1.0
    return min(max(raw_risk * penalty * 100, 0.0), 100.0)


def calculate_all_risks(
    requirements: list[Requirement],
    current_sprint: int,
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> list[Requirement]:
    """
    Full-catalog risk pass.

    Refreshes structural metrics first, then walks every root (no parent, or
    a parent that no longer exists) recursively.  Returns new requirement
    objects in the input order; nodes the walk never reaches score 0.
    """
    with_metrics = apply_structural_metrics(requirements)
    by_id = index_by_id(with_metrics)
    risks: dict[str, float] = {}

    def walk(req: Requirement, depth: int) -> None:
        if req.id in risks:
            return
        risks[req.id] = calculate_risk(req, current_sprint, depth, config)
        child_depth = depth if req.is_container else depth + 1
        for child_id in req.children_ids:
            child = by_id.get(child_id)
            if child is not None:
                walk(child, child_depth)

    roots = [
        req for req in with_metrics
        if not req.parent_id or req.parent_id not in by_id
    ]
    for root in roots:
        walk(root, 0)

    unreached = [req.id for req in with_metrics if req.id not in risks]
    if unreached:
        logger.warning(f"Risk walk did not reach {len(unreached)} requirement(s): {unreached[:5]}")

    logger.debug(
        f"Risk pass at sprint {current_sprint}: {len(roots)} roots, "
        f"{len(risks)} scored"
    )
    return [
        req.model_copy(update={"risk": risks.get(req.id, 0.0)})
        for req in with_metrics
    ]
