"""
Catalog Service — catalog import, risk recalculation and audit proposals.

Every method loads what it needs from the injected KeyValueStore, runs the
pure engine functions and writes the result back.  Multi-catalog operations
do one read-modify-write per catalog; a failure on one catalog does not
undo the others.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from pydantic import ValidationError

from requirement_audit.config import Settings, get_settings
from requirement_audit.engine import (
    RiskConfig,
    build_hierarchy,
    calculate_all_risks,
    flatten_requirements,
    rank_all_by_risk,
    select_for_audit,
)
from requirement_audit.engine.hierarchy import collect_ids, is_blank
from requirement_audit.exceptions import NotFoundError, PartialCatalogUpdateError, StorageError
from requirement_audit.models.schemas import (
    AllCatalogsRiskResult,
    AuditSelection,
    Catalog,
    CatalogRef,
    CatalogSummary,
    ImportErrorEntry,
    ImportResult,
    Requirement,
    RequirementImport,
    RequirementTreeNode,
    RiskRecalculationResult,
)
from requirement_audit.persistence.kv_store import KeyValueStore
from requirement_audit.persistence.repositories import CatalogRepository

logger = logging.getLogger(__name__)


def new_catalog_id() -> str:
    return uuid.uuid4().hex[:12]


class CatalogService:
    """Catalog-level operations over the requirement-tree engine."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Settings | None = None,
        risk_config: RiskConfig | None = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.risk_config = risk_config or RiskConfig()
        self.catalogs = CatalogRepository(store)

    # ── Catalog CRUD ─────────────────────────────────────

    def create_catalog(
        self,
        user_id: str,
        title: str,
        description: str = "",
        prefix: str = "",
    ) -> Catalog:
        catalog = Catalog(
            id=new_catalog_id(),
            user_id=user_id,
            title=title,
            description=description,
            prefix=prefix,
        )
        catalog = self.catalogs.save(catalog)
        logger.info(f"Created catalog {catalog.id} ({title!r})")
        return catalog

    def get_all_catalogs(self) -> list[CatalogSummary]:
        return [
            CatalogSummary(
                id=c.id,
                title=c.title,
                description=c.description,
                prefix=c.prefix,
                requirement_count=len(c.requirements),
            )
            for c in self.catalogs.list()
        ]

    def get_catalog_by_id(self, catalog_id: str) -> Catalog:
        return self.catalogs.get(catalog_id)

    def get_catalog_requirements(self, catalog_id: str) -> list[Requirement]:
        return self.catalogs.get(catalog_id).requirements

    def delete_catalog(self, catalog_id: str) -> None:
        self.catalogs.delete(catalog_id)

    def delete_all_catalogs(self) -> int:
        count = self.catalogs.delete_all()
        logger.info(f"Deleted {count} catalog(s)")
        return count

    def clean_database(self) -> int:
        """Remove every key in the store (catalogs, sprints, config)."""
        keys = [key for key, _ in self.store.query("")]
        for key in keys:
            self.store.delete(key)
        logger.warning(f"Database cleaned: {len(keys)} key(s) removed")
        return len(keys)

    # ── Import / hierarchy ───────────────────────────────

    def import_requirements_from_custom_csv(
        self,
        requirements: list[dict[str, Any]],
        catalog_name: str,
    ) -> ImportResult:
        """
        Create a new catalog from a nested requirement tree.
        Malformed top-level entries are reported in ``errors`` and skipped.
        """
        result = ImportResult(total=len(requirements))
        valid: list[RequirementImport] = []
        seen_ids: set[str] = set()

        for index, raw in enumerate(requirements):
            try:
                root = RequirementImport.model_validate(raw)
            except ValidationError as e:
                result.errors.append(ImportErrorEntry(index=index, message=_format_validation(e)))
                continue

            ids = collect_ids(root)
            duplicates = sorted({i for i in ids if ids.count(i) > 1} | (set(ids) & seen_ids))
            if duplicates:
                result.errors.append(ImportErrorEntry(
                    index=index,
                    message=f"Duplicate requirement ids: {', '.join(duplicates)}",
                ))
                continue

            seen_ids.update(ids)
            valid.append(root)

        if not valid and result.errors:
            logger.warning(f"Import of {catalog_name!r} rejected: {len(result.errors)} error(s)")
            return result

        flat = flatten_requirements(valid, catalog_name)
        catalog = Catalog(
            id=new_catalog_id(),
            user_id="system",
            title=catalog_name,
            description="Automatically generated",
            prefix="IMP",
            requirements=flat,
        )
        try:
            self.catalogs.save(catalog)
        except StorageError as e:
            result.errors.append(ImportErrorEntry(index=-1, message=f"Error importing requirements: {e}"))
            return result

        result.success = len(flat)
        result.catalog_id = catalog.id
        logger.info(
            f"Imported {len(flat)} requirement(s) into catalog {catalog.id} "
            f"({len(result.errors)} error(s))"
        )
        return result

    def get_requirement_hierarchy(self, catalog_id: str) -> list[RequirementTreeNode]:
        return build_hierarchy(self.catalogs.get(catalog_id).requirements)

    # ── Risk ─────────────────────────────────────────────

    def calculate_risks_by_catalog(self, catalog_id: str, sprint_actual: int) -> RiskRecalculationResult:
        catalog = self._recalculate(self.catalogs.get(catalog_id), sprint_actual)
        return RiskRecalculationResult(success=True, catalog=catalog)

    def calculate_risks_all_catalogs(self, sprint_actual: int) -> AllCatalogsRiskResult:
        updated: list[CatalogRef] = []
        failed: dict[str, str] = {}
        for catalog in self.catalogs.list():
            try:
                catalog = self._recalculate(catalog, sprint_actual)
            except StorageError as e:
                logger.error(f"Risk recalculation failed for catalog {catalog.id}: {e}")
                failed[catalog.id] = str(e)
                continue
            updated.append(CatalogRef(id=catalog.id, title=catalog.title))

        if failed:
            raise PartialCatalogUpdateError([ref.id for ref in updated], failed)
        return AllCatalogsRiskResult(success=True, updated_catalogs=updated)

    def _recalculate(self, catalog: Catalog, sprint_actual: int) -> Catalog:
        requirements = calculate_all_risks(catalog.requirements, sprint_actual, self.risk_config)
        catalog = self.catalogs.save(catalog.model_copy(update={"requirements": requirements}))
        logger.info(
            f"Recalculated risk for catalog {catalog.id} at sprint {sprint_actual} "
            f"({len(requirements)} requirements)"
        )
        return catalog

    # ── Audit proposals ──────────────────────────────────

    def select_requirements_for_audit(
        self,
        catalog_id: str,
        reqs_to_avoid: list[str] | None = None,
    ) -> AuditSelection:
        catalog = self.catalogs.get(catalog_id)
        proposal, total = select_for_audit(
            catalog.requirements,
            reqs_to_avoid,
            self.settings.audit_proposal_size,
        )
        return AuditSelection(selected_requirements=proposal, total_requirements=total)

    def get_all_requirements_by_risk(self, reqs_to_avoid: list[str] | None = None) -> AuditSelection:
        pooled = [req for catalog in self.catalogs.list() for req in catalog.requirements]
        ranked = rank_all_by_risk(pooled, reqs_to_avoid, self.settings.audit_proposal_size)
        return AuditSelection(selected_requirements=ranked)

    # ── Requirement editing ──────────────────────────────

    def get_requirements_by_ids(self, requirement_ids: list[str]) -> list[Requirement]:
        wanted = set(requirement_ids)
        return [
            req
            for catalog in self.catalogs.list()
            for req in catalog.requirements
            if req.id in wanted
        ]

    def update_requirement(
        self,
        requirement_id: str,
        heading: str,
        text: str,
        important: int,
    ) -> Requirement:
        """Edit a requirement's content in the first catalog that holds it."""
        for catalog in self.catalogs.list():
            for position, req in enumerate(catalog.requirements):
                if req.id != requirement_id:
                    continue
                updated = Requirement.model_validate({
                    **req.model_dump(),
                    "heading": heading,
                    "text": text,
                    "important": important,
                    "is_container": is_blank(text),
                })
                requirements = list(catalog.requirements)
                requirements[position] = updated
                self.catalogs.save(catalog.model_copy(update={"requirements": requirements}))
                logger.info(f"Updated requirement {requirement_id} in catalog {catalog.id}")
                return updated
        raise NotFoundError("Requirement", requirement_id)

    def delete_requirement(self, catalog_id: str, requirement_id: str) -> list[str]:
        """
        Remove a requirement and its descendants from a catalog.
        The parent's ``children_ids`` is updated; other nodes' dependencies
        keep their (now dangling) references.  Returns the removed ids.
        """
        catalog = self.catalogs.get(catalog_id)
        by_id = {req.id: req for req in catalog.requirements}
        if requirement_id not in by_id:
            raise NotFoundError("Requirement", requirement_id)

        removed: list[str] = []
        pending = [requirement_id]
        while pending:
            current = pending.pop()
            if current in removed or current not in by_id:
                continue
            removed.append(current)
            pending.extend(by_id[current].children_ids)

        removed_set = set(removed)
        requirements = [
            req.model_copy(update={
                "children_ids": [c for c in req.children_ids if c != requirement_id],
            })
            for req in catalog.requirements
            if req.id not in removed_set
        ]
        self.catalogs.save(catalog.model_copy(update={"requirements": requirements}))
        logger.info(
            f"Deleted requirement {requirement_id} (+{len(removed) - 1} descendants) "
            f"from catalog {catalog_id}"
        )
        return removed


def _format_validation(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'entry'}: {err['msg']}"
        for err in error.errors()
    )
