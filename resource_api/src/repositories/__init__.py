"""Entity store contract and implementations."""

from resource_api.src.repositories.base import EntityStore
from resource_api.src.repositories.memory_store import InMemoryEntityStore
from resource_api.src.repositories.postgres_store import PostgresEntityStore

__all__ = [
    "EntityStore",
    "InMemoryEntityStore",
    "PostgresEntityStore",
]
