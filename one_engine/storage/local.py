"""
Local storage implementation for development and tests.

Works without any external database.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any

from one_engine.storage.base import MetadataStorage, StorageProvider


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage for development."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if collection not in self._data:
            self._data[collection] = {}
        self._data[collection][id] = {
            **deepcopy(data),
            "_id": id,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        # Callers get a copy so records only change through update()
        return deepcopy(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        results = self._matching(collection, filters)
        return [deepcopy(doc) for doc in results[offset:offset + limit]]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        if collection in self._data and id in self._data[collection]:
            self._data[collection][id].update(deepcopy(updates))
            self._data[collection][id]["_updated_at"] = datetime.now(timezone.utc).isoformat()
            return True
        return False

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return len(self._matching(collection, filters))

    def _matching(
        self,
        collection: str,
        filters: dict[str, Any] | None,
    ) -> list[dict[str, Any]]:
        docs = list(self._data.get(collection, {}).values())
        if not filters:
            return docs
        return [
            doc for doc in docs
            if all(doc.get(key) == value for key, value in filters.items())
        ]


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with local implementations."""
    return StorageProvider(metadata=InMemoryMetadataStorage())
