"""
Sprint API routes — thin HTTP layer over SprintService.

Routes:
  GET    /api/sprints/config                                   → Sprint config (defaults if unset)
  PUT    /api/sprints/config                                   → Save sprint config
  POST   /api/sprints                                          → Create sprint / extend the active one
  GET    /api/sprints                                          → All sprints, by number
  DELETE /api/sprints                                          → Delete every sprint
  GET    /api/sprints/active                                   → The active sprint (or null)
  POST   /api/sprints/audited                                  → Mark requirements audited
  PUT    /api/sprints/requirements/{requirement_id}/story-points → Set story points
  GET    /api/sprints/{sprint_number}                          → One sprint
  PATCH  /api/sprints/{sprint_number}                          → Edit sprint parameters
  POST   /api/sprints/{sprint_number}/end                      → Close the sprint
  DELETE /api/sprints/{sprint_number}/requirements/{requirement_id} → Drop a requirement
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from requirement_audit.api.dependencies import get_sprint_service
from requirement_audit.models.schemas import (
    MarkAuditedResult,
    OperationResult,
    Sprint,
    SprintConfig,
    SprintDraft,
    SprintRemovalResult,
    SprintUpdate,
)
from requirement_audit.services import SprintService

logger = logging.getLogger(__name__)

sprint_router = APIRouter()


# ── Request schemas ──────────────────────────────────────
class MarkAuditedRequest(BaseModel):
    requirement_ids: list[str]
    sprint_number: int


class StoryPointsRequest(BaseModel):
    new_story_points: int = Field(ge=0)


# ── Config ───────────────────────────────────────────────

@sprint_router.get("/config", response_model=SprintConfig)
def get_sprint_config(service: SprintService = Depends(get_sprint_service)):
    return service.get_sprint_config()


@sprint_router.put("/config", response_model=SprintConfig)
def save_sprint_config(body: SprintConfig, service: SprintService = Depends(get_sprint_service)):
    return service.save_sprint_config(body)


# ── Sprint collection ────────────────────────────────────

@sprint_router.post("", response_model=Sprint)
def save_sprint(body: SprintDraft, service: SprintService = Depends(get_sprint_service)):
    return service.save_sprint(body)


@sprint_router.get("", response_model=list[Sprint])
def get_all_sprints(service: SprintService = Depends(get_sprint_service)):
    return service.get_all_sprints()


@sprint_router.delete("", response_model=OperationResult)
def delete_all_sprints(service: SprintService = Depends(get_sprint_service)):
    deleted = service.delete_all_sprints()
    return OperationResult(details={"deleted": deleted})


@sprint_router.get("/active", response_model=Optional[Sprint])
def get_active_sprint(service: SprintService = Depends(get_sprint_service)):
    return service.get_active_sprint()


@sprint_router.post("/audited", response_model=MarkAuditedResult)
def mark_as_audited(body: MarkAuditedRequest, service: SprintService = Depends(get_sprint_service)):
    logger.info(f"Audit completion: {len(body.requirement_ids)} id(s) in sprint {body.sprint_number}")
    return service.mark_as_audited(body.requirement_ids, body.sprint_number)


@sprint_router.put("/requirements/{requirement_id}/story-points", response_model=OperationResult)
def update_requirement_story_points(
    requirement_id: str,
    body: StoryPointsRequest,
    service: SprintService = Depends(get_sprint_service),
):
    success = service.update_requirement_story_points(requirement_id, body.new_story_points)
    return OperationResult(success=success)


# ── Single sprint ────────────────────────────────────────

@sprint_router.get("/{sprint_number}", response_model=Sprint)
def get_sprint_by_number(sprint_number: int, service: SprintService = Depends(get_sprint_service)):
    return service.get_sprint_by_number(sprint_number)


@sprint_router.patch("/{sprint_number}", response_model=Sprint)
def modify_sprint(
    sprint_number: int,
    body: SprintUpdate,
    service: SprintService = Depends(get_sprint_service),
):
    return service.modify_sprint(sprint_number, body)


@sprint_router.post("/{sprint_number}/end", response_model=Sprint)
def end_actual_sprint(sprint_number: int, service: SprintService = Depends(get_sprint_service)):
    return service.end_actual_sprint(sprint_number)


@sprint_router.delete("/{sprint_number}/requirements/{requirement_id}", response_model=SprintRemovalResult)
def remove_requirement_from_sprint(
    sprint_number: int,
    requirement_id: str,
    service: SprintService = Depends(get_sprint_service),
):
    return service.remove_requirement_from_sprint(sprint_number, requirement_id)
