"""
Storage abstractions.

Production Integration Points:
- MetadataStorage -> PostgreSQL (users, projects, orders, investments)
"""

from one_engine.storage.base import (
    Collections,
    MetadataStorage,
    StorageProvider,
)
from one_engine.storage.local import InMemoryMetadataStorage, create_local_storage

__all__ = [
    "Collections",
    "InMemoryMetadataStorage",
    "MetadataStorage",
    "StorageProvider",
    "create_local_storage",
]
