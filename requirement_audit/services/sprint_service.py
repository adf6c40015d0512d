"""
Sprint Service — sprint lifecycle, sprint configuration and audit completion.

Sprint rules:
  • only one sprint is active at a time
  • sprint numbers are never reused
  • a closed sprint is never reopened or edited (audit marks excepted)
"""

from __future__ import annotations

import logging

from requirement_audit.engine import mark_audited
from requirement_audit.exceptions import (
    NotFoundError,
    PartialCatalogUpdateError,
    SprintStateError,
    StorageError,
)
from requirement_audit.models.schemas import (
    MarkAuditedResult,
    Requirement,
    Sprint,
    SprintConfig,
    SprintDraft,
    SprintRemovalResult,
    SprintRequirement,
    SprintUpdate,
)
from requirement_audit.persistence.kv_store import KeyValueStore
from requirement_audit.persistence.repositories import (
    CatalogRepository,
    SprintConfigRepository,
    SprintRepository,
)
from requirement_audit.services.issue_service import IssueService

logger = logging.getLogger(__name__)


class SprintService:
    """Sprint snapshots and the audit counters they feed back into catalogs."""

    def __init__(self, store: KeyValueStore, issues: IssueService | None = None):
        self.store = store
        self.issues = issues
        self.catalogs = CatalogRepository(store)
        self.sprints = SprintRepository(store)
        self.config = SprintConfigRepository(store)

    # ── Sprint configuration ─────────────────────────────

    def save_sprint_config(self, config: SprintConfig) -> SprintConfig:
        saved = self.config.save(config)
        logger.info(f"Saved sprint config (sprint {saved.sprint_number})")
        return saved

    def get_sprint_config(self) -> SprintConfig:
        return self.config.get()

    # ── Sprint lifecycle ─────────────────────────────────

    def save_sprint(self, draft: SprintDraft) -> Sprint:
        """Create sprint ``draft.sprint_number`` or extend it if it is the active one."""
        existing = self.sprints.find(draft.sprint_number)

        if existing is not None:
            if not existing.is_active:
                raise SprintStateError(
                    f"Sprint {draft.sprint_number} is closed and cannot be extended"
                )
            sprint = existing
            if draft.sprint_capacity:
                sprint.sprint_capacity = draft.sprint_capacity
            if draft.points_per_requirement:
                sprint.points_per_requirement = draft.points_per_requirement
        else:
            active = self.sprints.active()
            if active is not None:
                raise SprintStateError(
                    f"Sprint {active.sprint_number} is still active; end it before "
                    f"starting sprint {draft.sprint_number}"
                )
            sprint = Sprint(
                sprint_number=draft.sprint_number,
                project_name=draft.project_name,
                sprint_capacity=draft.sprint_capacity,
                points_per_requirement=draft.points_per_requirement,
                team_size=draft.team_size,
                sprint_duration=draft.sprint_duration,
                is_active=True,
            )

        present = {req.id for req in sprint.requirements}
        new_ids = [rid for rid in dict.fromkeys(draft.requirement_ids) if rid not in present]
        additions = self._snapshot(new_ids)

        if additions and self.issues is not None and self.config.get().create_issues:
            keys = self.issues.create_issues(additions)
            additions = [
                req.model_copy(update={"issue_key": keys.get(req.id)}) for req in additions
            ]

        sprint.requirements = sprint.requirements + additions
        sprint = self.sprints.save(sprint)
        logger.info(
            f"Saved sprint {sprint.sprint_number}: +{len(additions)} requirement(s), "
            f"{sprint.points_used()}/{sprint.sprint_capacity} points"
        )
        return sprint

    def _snapshot(self, requirement_ids: list[str]) -> list[SprintRequirement]:
        if not requirement_ids:
            return []
        found: dict[str, SprintRequirement] = {}
        for catalog in self.catalogs.list():
            for req in catalog.requirements:
                if req.id in requirement_ids and req.id not in found:
                    found[req.id] = _to_snapshot(req, catalog.id)
        missing = [rid for rid in requirement_ids if rid not in found]
        if missing:
            raise NotFoundError("Requirement", ", ".join(missing))
        return [found[rid] for rid in requirement_ids]

    def get_sprint_by_number(self, sprint_number: int) -> Sprint:
        return self.sprints.get(sprint_number)

    def get_active_sprint(self) -> Sprint | None:
        return self.sprints.active()

    def get_all_sprints(self) -> list[Sprint]:
        return self.sprints.list()

    def end_actual_sprint(self, sprint_number: int) -> Sprint:
        sprint = self._active_sprint(sprint_number)
        sprint.is_active = False
        sprint = self.sprints.save(sprint)
        logger.info(f"Closed sprint {sprint_number}")
        return sprint

    def modify_sprint(self, sprint_number: int, updates: SprintUpdate) -> Sprint:
        sprint = self._active_sprint(sprint_number)
        changes = updates.model_dump(exclude_none=True)
        sprint = self.sprints.save(sprint.model_copy(update=changes))
        logger.info(f"Modified sprint {sprint_number}: {sorted(changes)}")
        return sprint

    def remove_requirement_from_sprint(self, sprint_number: int, requirement_id: str) -> SprintRemovalResult:
        sprint = self._active_sprint(sprint_number)
        remaining = [req for req in sprint.requirements if req.id != requirement_id]
        if len(remaining) == len(sprint.requirements):
            raise NotFoundError("Requirement", f"{requirement_id} in sprint {sprint_number}")
        sprint.requirements = remaining
        self.sprints.save(sprint)
        logger.info(f"Removed {requirement_id} from sprint {sprint_number}")
        return SprintRemovalResult(success=True, sprint_number=sprint_number, removed_id=requirement_id)

    def delete_all_sprints(self) -> int:
        count = self.sprints.delete_all()
        logger.info(f"Deleted {count} sprint(s)")
        return count

    def _active_sprint(self, sprint_number: int) -> Sprint:
        sprint = self.sprints.get(sprint_number)
        if not sprint.is_active:
            raise SprintStateError(f"Sprint {sprint_number} is closed")
        return sprint

    # ── Audit completion ─────────────────────────────────

    def mark_as_audited(self, requirement_ids: list[str], sprint_number: int) -> MarkAuditedResult:
        """
        Advance audit counters on every matching node of every catalog and
        on the snapshot of ``sprint_number``.  Not guarded against double
        submission.
        """
        updated_count = 0
        updated_catalogs: list[str] = []
        failed: dict[str, str] = {}

        for catalog in self.catalogs.list():
            requirements, count = mark_audited(catalog.requirements, requirement_ids, sprint_number)
            if not count:
                continue
            try:
                self.catalogs.save(catalog.model_copy(update={"requirements": requirements}))
            except StorageError as e:
                logger.error(f"Audit mark failed for catalog {catalog.id}: {e}")
                failed[catalog.id] = str(e)
                continue
            updated_count += count
            updated_catalogs.append(catalog.id)

        sprint = self.sprints.find(sprint_number)
        if sprint is not None:
            snapshot, count = mark_audited(sprint.requirements, requirement_ids, sprint_number)
            if count:
                self.sprints.save(sprint.model_copy(update={"requirements": snapshot}))

        logger.info(
            f"Marked {updated_count} requirement(s) audited in sprint {sprint_number} "
            f"across {len(updated_catalogs)} catalog(s)"
        )
        if failed:
            raise PartialCatalogUpdateError(updated_catalogs, failed)
        return MarkAuditedResult(success=True, updated_count=updated_count)

    def update_requirement_story_points(self, requirement_id: str, new_story_points: int) -> bool:
        """
        Set the effort override on every catalog node with this id and on the
        latest sprint's snapshot entry while that sprint is active.
        """
        found = False
        updated_catalogs: list[str] = []
        failed: dict[str, str] = {}

        for catalog in self.catalogs.list():
            if not any(req.id == requirement_id for req in catalog.requirements):
                continue
            found = True
            requirements = [
                req.model_copy(update={"effort": new_story_points}) if req.id == requirement_id else req
                for req in catalog.requirements
            ]
            try:
                self.catalogs.save(catalog.model_copy(update={"requirements": requirements}))
            except StorageError as e:
                failed[catalog.id] = str(e)
                continue
            updated_catalogs.append(catalog.id)

        sprint = self.sprints.latest()
        if sprint is not None and sprint.is_active:
            if any(req.id == requirement_id for req in sprint.requirements):
                found = True
                sprint.requirements = [
                    req.model_copy(update={"effort": new_story_points}) if req.id == requirement_id else req
                    for req in sprint.requirements
                ]
                self.sprints.save(sprint)

        if failed:
            raise PartialCatalogUpdateError(updated_catalogs, failed)
        if not found:
            raise NotFoundError("Requirement", requirement_id)
        logger.info(f"Set story points of {requirement_id} to {new_story_points}")
        return True


def _to_snapshot(req: Requirement, catalog_id: str) -> SprintRequirement:
    return SprintRequirement(
        id=req.id,
        catalog_id=catalog_id,
        catalog_title=req.catalog_title,
        section=req.section,
        heading=req.heading,
        effort=req.effort,
        risk=req.risk,
        n_audit=req.n_audit,
        last_audit_sprint=req.last_audit_sprint,
    )
