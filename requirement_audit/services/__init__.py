"""Services — CatalogService, SprintService, IssueService."""

from requirement_audit.services.catalog_service import CatalogService
from requirement_audit.services.issue_service import IssueService
from requirement_audit.services.sprint_service import SprintService

__all__ = ["CatalogService", "IssueService", "SprintService"]
