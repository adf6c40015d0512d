"""Persistence — key-value stores and typed repositories."""

from __future__ import annotations

import logging

from requirement_audit.config import Settings, get_settings
from requirement_audit.models.enums import StorageBackend
from requirement_audit.persistence.kv_store import InMemoryKeyValueStore, KeyValueStore
from requirement_audit.persistence.repositories import (
    CatalogRepository,
    SprintConfigRepository,
    SprintRepository,
)

logger = logging.getLogger(__name__)


def create_store(settings: Settings | None = None) -> KeyValueStore:
    """Build the store selected by ``settings.storage_backend``."""
    settings = settings or get_settings()
    backend = StorageBackend(settings.storage_backend)
    if backend == StorageBackend.MONGO:
        from requirement_audit.persistence.mongo_store import MongoKeyValueStore

        return MongoKeyValueStore(settings)
    logger.info("Using in-memory key-value store")
    return InMemoryKeyValueStore()


__all__ = [
    "create_store",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "CatalogRepository",
    "SprintRepository",
    "SprintConfigRepository",
]
