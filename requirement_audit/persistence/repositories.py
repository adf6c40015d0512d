"""
Repositories — typed access to catalogs, sprints and the sprint config
on top of a KeyValueStore.
"""

from __future__ import annotations

import logging

from requirement_audit.exceptions import NotFoundError
from requirement_audit.models.enums import StorageKey
from requirement_audit.models.schemas import Catalog, Sprint, SprintConfig
from requirement_audit.persistence.kv_store import KeyValueStore
from requirement_audit.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Catalogs live under ``catalog-<id>``, one key per catalog."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def key(catalog_id: str) -> str:
        return f"{StorageKey.CATALOG_PREFIX.value}{catalog_id}"

    def get(self, catalog_id: str) -> Catalog:
        value = self.store.get(self.key(catalog_id))
        if value is None:
            raise NotFoundError("Catalog", catalog_id)
        return Catalog.model_validate(value)

    def save(self, catalog: Catalog) -> Catalog:
        catalog = catalog.model_copy(update={"date_update": utc_now_iso()})
        self.store.set(self.key(catalog.id), catalog.model_dump(mode="json"))
        return catalog

    def list(self) -> list[Catalog]:
        return [
            Catalog.model_validate(value)
            for _, value in self.store.query(StorageKey.CATALOG_PREFIX.value)
        ]

    def delete(self, catalog_id: str) -> None:
        if self.store.get(self.key(catalog_id)) is None:
            raise NotFoundError("Catalog", catalog_id)
        self.store.delete(self.key(catalog_id))
        logger.info(f"Deleted catalog {catalog_id}")

    def delete_all(self) -> int:
        keys = [key for key, _ in self.store.query(StorageKey.CATALOG_PREFIX.value)]
        for key in keys:
            self.store.delete(key)
        return len(keys)


class SprintRepository:
    """Sprints live under ``sprint-<number>``."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def key(sprint_number: int) -> str:
        return f"{StorageKey.SPRINT_PREFIX.value}{sprint_number}"

    def find(self, sprint_number: int) -> Sprint | None:
        value = self.store.get(self.key(sprint_number))
        return Sprint.model_validate(value) if value is not None else None

    def get(self, sprint_number: int) -> Sprint:
        sprint = self.find(sprint_number)
        if sprint is None:
            raise NotFoundError("Sprint", sprint_number)
        return sprint

    def save(self, sprint: Sprint) -> Sprint:
        sprint = sprint.model_copy(update={"date_update": utc_now_iso()})
        self.store.set(self.key(sprint.sprint_number), sprint.model_dump(mode="json"))
        return sprint

    def list(self) -> list[Sprint]:
        """All sprints ordered by sprint number (not by key text)."""
        sprints: list[Sprint] = []
        prefix = StorageKey.SPRINT_PREFIX.value
        for key, value in self.store.query(prefix):
            if not key[len(prefix):].isdigit():
                logger.warning(f"Ignoring malformed sprint key {key}")
                continue
            sprints.append(Sprint.model_validate(value))
        return sorted(sprints, key=lambda s: s.sprint_number)

    def latest(self) -> Sprint | None:
        sprints = self.list()
        return sprints[-1] if sprints else None

    def active(self) -> Sprint | None:
        active = [s for s in self.list() if s.is_active]
        return active[-1] if active else None

    def delete_all(self) -> int:
        keys = [key for key, _ in self.store.query(StorageKey.SPRINT_PREFIX.value)]
        for key in keys:
            self.store.delete(key)
        return len(keys)


class SprintConfigRepository:
    """The ``config-sprint`` singleton."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self) -> SprintConfig:
        value = self.store.get(StorageKey.SPRINT_CONFIG.value)
        if value is None:
            return SprintConfig(is_default=True)
        return SprintConfig.model_validate({**value, "is_default": False})

    def save(self, config: SprintConfig) -> SprintConfig:
        config = config.model_copy(update={"is_default": False})
        self.store.set(StorageKey.SPRINT_CONFIG.value, config.model_dump(mode="json"))
        return config
