from enum import Enum


class StorageKey(str, Enum):
    """Key namespaces in the key-value store."""
    CATALOG_PREFIX = "catalog-"
    SPRINT_PREFIX = "sprint-"
    SPRINT_CONFIG = "config-sprint"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    MONGO = "mongo"
