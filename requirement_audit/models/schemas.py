"""
Data schemas for catalogs, requirements and sprints.

Requirements are stored flat: every node carries explicit ``parent_id`` /
``children_ids`` links.  The nested shapes (``RequirementImport`` and
``RequirementTreeNode``) only exist at the edges, for import and display.
"""

from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, Field

from requirement_audit.utils.timestamps import utc_now_iso


# ── Requirements ─────────────────────────────────────────


class Requirement(BaseModel):
    """A single node of a catalog forest, in flat storage form."""
    id: str
    level: int = 0
    section: str = ""
    heading: str = ""
    text: str = ""
    parent_id: Optional[str] = None
    children_ids: list[str] = []
    is_container: bool = False
    important: int = Field(default=1, ge=1, le=100)
    dependencies: list[str] = []
    n_dep: int = 0
    n_audit: int = Field(default=0, ge=0)
    last_audit_sprint: Optional[int] = None
    effort: Optional[int] = None
    catalog_title: str = ""

    # Derived; recomputed together on every risk pass
    risk: float = 0.0
    sibling_count: int = 0
    descendant_count: int = 0

    @property
    def depth(self) -> int:
        """Nesting depth implied by the dotted section (``"2.3.1"`` → 2)."""
        return len(self.section.split(".")) - 1 if self.section else 0


class RequirementImport(BaseModel):
    """Nested requirement as received from a catalog import."""
    id: str = Field(min_length=1)
    level: int = 0
    section: str = Field(min_length=1)
    heading: str = ""
    text: str = ""
    important: int = Field(default=1, ge=1, le=100)
    effort: Optional[int] = None
    dependencies: list[str] = []
    n_dep: int = 0
    children: list[RequirementImport] = []


class RequirementTreeNode(Requirement):
    """A requirement with its children attached, for hierarchy display."""
    children: list[RequirementTreeNode] = []


# ── Catalogs ─────────────────────────────────────────────


class Catalog(BaseModel):
    """An independent forest of requirements stored as one flat list."""
    id: str
    user_id: str = ""
    title: str = ""
    description: str = ""
    prefix: str = ""
    date_creation: str = Field(default_factory=utc_now_iso)
    date_update: str = Field(default_factory=utc_now_iso)
    requirements: list[Requirement] = []


class CatalogSummary(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    prefix: str = ""
    requirement_count: int = 0


# ── Sprints ──────────────────────────────────────────────


class SprintRequirement(BaseModel):
    """Snapshot of a requirement at the time it was put into a sprint."""
    id: str
    catalog_id: str = ""
    catalog_title: str = ""
    section: str = ""
    heading: str = ""
    effort: Optional[int] = None
    risk: float = 0.0
    n_audit: int = 0
    last_audit_sprint: Optional[int] = None
    issue_key: Optional[str] = None


class Sprint(BaseModel):
    sprint_number: int
    project_name: str = ""
    sprint_capacity: int = 0
    points_per_requirement: int = 0
    team_size: int = 0
    sprint_duration: int = 0
    requirements: list[SprintRequirement] = []
    is_active: bool = True
    date_creation: str = Field(default_factory=utc_now_iso)
    date_update: str = Field(default_factory=utc_now_iso)

    def points_used(self) -> int:
        """Story points taken, using the per-requirement default where effort is unset."""
        return sum(
            req.effort if req.effort else self.points_per_requirement
            for req in self.requirements
        )

    def remaining_capacity(self) -> int:
        return self.sprint_capacity - self.points_used()


class SprintDraft(BaseModel):
    """Payload for creating a sprint or extending the active one."""
    sprint_number: int
    project_name: str = ""
    sprint_capacity: int = 0
    points_per_requirement: int = 0
    team_size: int = 0
    sprint_duration: int = 0
    requirement_ids: list[str] = []


class SprintUpdate(BaseModel):
    """Editable sprint parameters; unset fields are left alone."""
    project_name: Optional[str] = None
    sprint_capacity: Optional[int] = None
    points_per_requirement: Optional[int] = None
    team_size: Optional[int] = None
    sprint_duration: Optional[int] = None


class SprintConfig(BaseModel):
    """Default sprint parameters (the ``config-sprint`` singleton)."""
    sprint_number: int = 0
    sprint_capacity: int = 0
    points_per_requirement: int = 0
    team_size: int = 0
    sprint_duration: int = 0
    create_issues: bool = False
    is_default: bool = True


# ── Operation results ────────────────────────────────────


class ImportErrorEntry(BaseModel):
    index: int
    message: str


class ImportResult(BaseModel):
    total: int = 0
    success: int = 0
    errors: list[ImportErrorEntry] = []
    catalog_id: Optional[str] = None


class RiskRecalculationResult(BaseModel):
    success: bool = True
    catalog: Catalog


class CatalogRef(BaseModel):
    id: str
    title: str = ""


class AllCatalogsRiskResult(BaseModel):
    success: bool = True
    updated_catalogs: list[CatalogRef] = []


class AuditSelection(BaseModel):
    selected_requirements: list[Requirement] = []
    total_requirements: Optional[int] = None


class MarkAuditedResult(BaseModel):
    success: bool = True
    updated_count: int = 0


class SprintRemovalResult(BaseModel):
    success: bool = True
    sprint_number: int
    removed_id: str


class OperationResult(BaseModel):
    success: bool = True
    details: dict[str, Any] = {}
