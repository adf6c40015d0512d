"""
Key-value store interface and the in-memory implementation.

Values are JSON-like dicts.  Keys are namespaced by prefix
(``catalog-``, ``sprint-``, ``config-sprint``); ``query`` performs a
prefix scan.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Opaque key → JSON-value storage passed into every service."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the value for ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: dict[str, Any]) -> None:
        """Create or overwrite ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    @abstractmethod
    def query(self, prefix: str = "") -> list[tuple[str, dict[str, Any]]]:
        """Return ``(key, value)`` pairs whose key starts with ``prefix``, sorted by key."""


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store for development and tests.
    Values are deep-copied in and out so callers never share state.
    """

    def __init__(self):
        self._memory_store: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._memory_store.get(key)
        return deepcopy(value) if value is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        self._memory_store[key] = deepcopy(value)
        logger.debug(f"Stored {key}")

    def delete(self, key: str) -> None:
        self._memory_store.pop(key, None)

    def query(self, prefix: str = "") -> list[tuple[str, dict[str, Any]]]:
        return [
            (key, deepcopy(value))
            for key, value in sorted(self._memory_store.items())
            if key.startswith(prefix)
        ]
