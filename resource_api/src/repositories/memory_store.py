"""
In-memory entity store.

Keeps entities in a dict keyed by id. Used for development and tests; state
is lost when the process exits.
"""

import asyncio
import structlog
from typing import Any, Dict, List, Optional, Type

from resource_api.src.models.pagination import Page, Pageable, SortOrder
from resource_api.src.repositories.base import EntityStore, EntityT

logger = structlog.get_logger(__name__)


def _sort_key(entity: EntityT, prop: str) -> tuple:
    value: Any = entity.id if prop == "id" else getattr(entity, prop, None)
    # Nulls sort before values in ascending order.
    return (value is not None, value)


def sort_entities(entities: List[EntityT], orders: List[SortOrder]) -> List[EntityT]:
    """
    Sort entities by several orders.

    Applies stable sorts from the least to the most significant order, so
    ties on the first order are broken by the next one.
    """
    result = sorted(entities, key=lambda e: e.id)
    for order in reversed(orders):
        result.sort(key=lambda e, p=order.property: _sort_key(e, p), reverse=order.descending)
    return result


class InMemoryEntityStore(EntityStore[EntityT]):
    """Entity store backed by a process-local dict."""

    def __init__(self, entity_type: Type[EntityT]):
        super().__init__(entity_type)
        self._entities: Dict[int, EntityT] = {}
        self._sequence = 0
        self._lock = asyncio.Lock()

    async def save(self, entity: EntityT) -> EntityT:
        async with self._lock:
            stored = entity.model_copy(deep=True)

            if stored.id is None:
                self._sequence += 1
                stored.id = self._sequence
                created = True
            else:
                self._sequence = max(self._sequence, stored.id)
                created = stored.id not in self._entities

            self._entities[stored.id] = stored

        logger.debug(
            "entity_saved",
            entity_type=self.entity_type.__name__,
            entity_id=stored.id,
            created=created
        )
        return stored.model_copy(deep=True)

    async def find_by_id(self, entity_id: int) -> Optional[EntityT]:
        entity = self._entities.get(entity_id)
        if entity is None:
            logger.debug("entity_not_found", entity_type=self.entity_type.__name__, entity_id=entity_id)
            return None
        return entity.model_copy(deep=True)

    async def find_page(self, pageable: Pageable) -> Page[EntityT]:
        entities = sort_entities(list(self._entities.values()), pageable.sort)
        content = entities[pageable.offset:pageable.offset + pageable.size]

        return Page(
            content=[entity.model_copy(deep=True) for entity in content],
            pageable=pageable,
            total_elements=len(entities),
        )

    async def delete_by_id(self, entity_id: int) -> None:
        async with self._lock:
            removed = self._entities.pop(entity_id, None)

        if removed is not None:
            logger.debug("entity_deleted", entity_type=self.entity_type.__name__, entity_id=entity_id)
