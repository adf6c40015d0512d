"""
FastAPI dependencies — the store and services injected into each route.
Tests override ``get_store`` with an in-memory store.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from requirement_audit.config import get_settings
from requirement_audit.persistence import KeyValueStore, create_store
from requirement_audit.services import CatalogService, IssueService, SprintService


@lru_cache()
def get_store() -> KeyValueStore:
    """Process-wide store selected by settings."""
    return create_store(get_settings())


@lru_cache()
def get_issue_service() -> IssueService:
    return IssueService(get_settings())


def get_catalog_service(store: KeyValueStore = Depends(get_store)) -> CatalogService:
    return CatalogService(store, get_settings())


def get_sprint_service(
    store: KeyValueStore = Depends(get_store),
    issues: IssueService = Depends(get_issue_service),
) -> SprintService:
    return SprintService(store, issues)
