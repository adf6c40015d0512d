"""
Requirement-tree engine — pure functions over flat requirement lists.

    from requirement_audit.engine import calculate_all_risks, select_for_audit
"""

from .hierarchy import build_hierarchy, flatten_requirements, index_by_id
from .metrics import apply_structural_metrics, descendant_counts, sibling_counts
from .risk import RiskConfig, calculate_all_risks, calculate_risk
from .eligibility import is_auditable, rank_all_by_risk, select_for_audit
from .audit_tracker import mark_audited

__all__ = [
    "build_hierarchy",
    "flatten_requirements",
    "index_by_id",
    "apply_structural_metrics",
    "descendant_counts",
    "sibling_counts",
    "RiskConfig",
    "calculate_all_risks",
    "calculate_risk",
    "is_auditable",
    "rank_all_by_risk",
    "select_for_audit",
    "mark_audited",
]
