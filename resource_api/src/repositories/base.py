"""
Entity store contract.

``EntityStore`` is the only collaborator an entity resource talks to.
Implementations own persistence entirely: id generation, ordering,
concurrency control and failure recovery.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, Type, TypeVar

from resource_api.src.models.entity import EntityModel
from resource_api.src.models.pagination import Page, Pageable

EntityT = TypeVar("EntityT", bound=EntityModel)


class EntityStore(ABC, Generic[EntityT]):
    """Async persistence interface for one entity type."""

    def __init__(self, entity_type: Type[EntityT]):
        self.entity_type = entity_type

    @abstractmethod
    async def save(self, entity: EntityT) -> EntityT:
        """Insert the entity when its id is null, otherwise upsert it by id.

        Returns the persisted entity carrying its id.
        """

    @abstractmethod
    async def find_by_id(self, entity_id: int) -> Optional[EntityT]:
        """Return the entity with the given id, or None if absent."""

    @abstractmethod
    async def find_page(self, pageable: Pageable) -> Page[EntityT]:
        """Return one page of entities plus the collection's total count."""

    @abstractmethod
    async def delete_by_id(self, entity_id: int) -> None:
        """Delete the entity with the given id; absent ids are ignored."""

    async def ping(self) -> bool:
        """Report whether the store can currently serve requests."""
        return True
