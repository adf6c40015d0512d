"""
Catalog API routes — thin HTTP layer over CatalogService.

Routes:
  GET    /health                                        → API health check
  POST   /api/catalogs                                  → Create an empty catalog
  GET    /api/catalogs                                  → List catalog summaries
  DELETE /api/catalogs                                  → Delete every catalog
  POST   /api/catalogs/import                           → Import a nested requirement tree
  POST   /api/catalogs/risks                            → Recalculate risk in all catalogs
  POST   /api/catalogs/audit-selection                  → Top requirements by risk, all catalogs
  POST   /api/catalogs/requirements/lookup              → Requirements by id, any catalog
  PUT    /api/catalogs/requirements/{requirement_id}    → Edit heading/text/importance
  POST   /api/catalogs/maintenance/clean                → Wipe the whole store
  GET    /api/catalogs/{catalog_id}                     → Full catalog
  DELETE /api/catalogs/{catalog_id}                     → Delete a catalog
  GET    /api/catalogs/{catalog_id}/requirements        → Flat requirement list
  GET    /api/catalogs/{catalog_id}/hierarchy           → Nested requirement tree
  POST   /api/catalogs/{catalog_id}/risks               → Recalculate risk in one catalog
  POST   /api/catalogs/{catalog_id}/audit-selection     → Eligible requirements ranked by risk
  DELETE /api/catalogs/{catalog_id}/requirements/{requirement_id} → Remove a requirement subtree
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from requirement_audit.api.dependencies import get_catalog_service
from requirement_audit.models.schemas import (
    AllCatalogsRiskResult,
    AuditSelection,
    Catalog,
    CatalogSummary,
    ImportResult,
    OperationResult,
    Requirement,
    RequirementTreeNode,
    RiskRecalculationResult,
)
from requirement_audit.services import CatalogService

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
catalog_router = APIRouter()


# ── Request schemas ──────────────────────────────────────
class CreateCatalogRequest(BaseModel):
    user_id: str = ""
    title: str
    description: str = ""
    prefix: str = ""


class ImportRequest(BaseModel):
    requirements: list[dict[str, Any]]
    catalog_name: str


class RiskRequest(BaseModel):
    sprint_actual: int


class AvoidRequest(BaseModel):
    reqs_to_avoid: list[str] = []


class LookupRequest(BaseModel):
    requirement_ids: list[str]


class UpdateRequirementRequest(BaseModel):
    heading: str
    text: str
    important: int = Field(ge=1, le=100)


# ── Health ───────────────────────────────────────────────

@health_router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Catalog collection ───────────────────────────────────

@catalog_router.post("", response_model=Catalog)
def create_catalog(body: CreateCatalogRequest, service: CatalogService = Depends(get_catalog_service)):
    return service.create_catalog(body.user_id, body.title, body.description, body.prefix)


@catalog_router.get("", response_model=list[CatalogSummary])
def get_all_catalogs(service: CatalogService = Depends(get_catalog_service)):
    return service.get_all_catalogs()


@catalog_router.delete("", response_model=OperationResult)
def delete_all_catalogs(service: CatalogService = Depends(get_catalog_service)):
    deleted = service.delete_all_catalogs()
    return OperationResult(details={"deleted": deleted})


@catalog_router.post("/import", response_model=ImportResult)
def import_requirements_from_custom_csv(
    body: ImportRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"Import request: {len(body.requirements)} root(s) into {body.catalog_name!r}")
    return service.import_requirements_from_custom_csv(body.requirements, body.catalog_name)


@catalog_router.post("/risks", response_model=AllCatalogsRiskResult)
def calculate_risks_all_catalogs(body: RiskRequest, service: CatalogService = Depends(get_catalog_service)):
    return service.calculate_risks_all_catalogs(body.sprint_actual)


@catalog_router.post("/audit-selection", response_model=AuditSelection)
def get_all_requirements_by_risk(body: AvoidRequest, service: CatalogService = Depends(get_catalog_service)):
    return service.get_all_requirements_by_risk(body.reqs_to_avoid)


@catalog_router.post("/requirements/lookup", response_model=list[Requirement])
def get_requirements_by_ids(body: LookupRequest, service: CatalogService = Depends(get_catalog_service)):
    return service.get_requirements_by_ids(body.requirement_ids)


@catalog_router.put("/requirements/{requirement_id}", response_model=Requirement)
def update_requirement(
    requirement_id: str,
    body: UpdateRequirementRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_requirement(requirement_id, body.heading, body.text, body.important)


@catalog_router.post("/maintenance/clean", response_model=OperationResult)
def clean_database(service: CatalogService = Depends(get_catalog_service)):
    removed = service.clean_database()
    return OperationResult(details={"removed_keys": removed})


# ── Single catalog ───────────────────────────────────────

@catalog_router.get("/{catalog_id}", response_model=Catalog)
def get_catalog_by_id(catalog_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_catalog_by_id(catalog_id)


@catalog_router.delete("/{catalog_id}", response_model=OperationResult)
def delete_catalog(catalog_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.delete_catalog(catalog_id)
    return OperationResult(details={"catalog_id": catalog_id})


@catalog_router.get("/{catalog_id}/requirements", response_model=list[Requirement])
def get_catalog_requirements(catalog_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_catalog_requirements(catalog_id)


@catalog_router.get("/{catalog_id}/hierarchy", response_model=list[RequirementTreeNode])
def get_requirement_hierarchy(catalog_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_requirement_hierarchy(catalog_id)


@catalog_router.post("/{catalog_id}/risks", response_model=RiskRecalculationResult)
def calculate_risks_by_catalog(
    catalog_id: str,
    body: RiskRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.calculate_risks_by_catalog(catalog_id, body.sprint_actual)


@catalog_router.post("/{catalog_id}/audit-selection", response_model=AuditSelection)
def select_requirements_for_audit(
    catalog_id: str,
    body: AvoidRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.select_requirements_for_audit(catalog_id, body.reqs_to_avoid)


@catalog_router.delete("/{catalog_id}/requirements/{requirement_id}", response_model=OperationResult)
def delete_requirement(
    catalog_id: str,
    requirement_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    removed = service.delete_requirement(catalog_id, requirement_id)
    return OperationResult(details={"removed_ids": removed})
