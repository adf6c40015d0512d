"""
MongoDB-backed key-value store.
One document per key: ``{"_id": <key>, "value": <json>}``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from requirement_audit.config import Settings, get_settings
from requirement_audit.exceptions import StorageError
from requirement_audit.persistence.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class MongoKeyValueStore(KeyValueStore):
    """Thin wrapper around a pymongo collection; connects lazily."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._client: MongoClient | None = None
        self._collection: Any = None

    def connect(self) -> None:
        """Establish the MongoDB connection."""
        self._client = MongoClient(self.settings.mongodb_uri)
        db = self._client[self.settings.mongodb_database]
        self._collection = db[self.settings.mongodb_collection]
        logger.info(
            f"Connected to MongoDB: {self.settings.mongodb_database}."
            f"{self.settings.mongodb_collection}"
        )

    @property
    def collection(self) -> Any:
        if self._collection is None:
            self.connect()
        return self._collection

    def get(self, key: str) -> dict[str, Any] | None:
        try:
            doc = self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"Failed reading {key}: {e}") from e
        return doc["value"] if doc else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        try:
            self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)
        except PyMongoError as e:
            raise StorageError(f"Failed writing {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"Failed deleting {key}: {e}") from e

    def query(self, prefix: str = "") -> list[tuple[str, dict[str, Any]]]:
        selector = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
        try:
            docs = self.collection.find(selector).sort("_id", 1)
            return [(doc["_id"], doc["value"]) for doc in docs]
        except PyMongoError as e:
            raise StorageError(f"Failed scanning prefix {prefix!r}: {e}") from e

    def close(self) -> None:
        """Close the connection."""
        if self._client:
            self._client.close()
            logger.info("MongoDB connection closed")
