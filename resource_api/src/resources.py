"""
Resource registry.

Entities are exposed by listing them here; one ``EntityResource`` and one
entity store are created per definition at application startup.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from resource_api.src.config import Settings
from resource_api.src.dependencies import get_db_pool
from resource_api.src.models.entity import CategoryTree, EntityModel
from resource_api.src.repositories.base import EntityStore
from resource_api.src.repositories.memory_store import InMemoryEntityStore
from resource_api.src.repositories.postgres_store import PostgresEntityStore
from resource_api.src.routers.entity_resource import EntityResource
from shared.logging import OperationLogger, get_logger
from shared.metrics import ResourceMetrics


@dataclass(frozen=True)
class ResourceDefinition:
    """Entity type plus the names it is exposed under."""

    entity_type: Type[EntityModel]
    entity_name: str
    path: str

    @property
    def table(self) -> str:
        return self.path.strip("/").replace("-", "_")


RESOURCE_DEFINITIONS: List[ResourceDefinition] = [
    ResourceDefinition(
        entity_type=CategoryTree,
        entity_name="icamApiCategoryTree",
        path="category-trees",
    ),
]


def build_store(definition: ResourceDefinition, settings: Settings) -> EntityStore:
    """Create the entity store for a definition per the configured backend."""
    if settings.uses_postgres:
        return PostgresEntityStore(definition.entity_type, definition.table, get_db_pool)
    return InMemoryEntityStore(definition.entity_type)


def build_resources(
    settings: Settings,
    definitions: Optional[List[ResourceDefinition]] = None,
    stores: Optional[Dict[str, EntityStore]] = None,
    metrics: Optional[ResourceMetrics] = None,
) -> List[EntityResource]:
    """
    Instantiate one resource per definition.

    Args:
        settings: Application settings
        definitions: Resource definitions (defaults to RESOURCE_DEFINITIONS)
        stores: Stores keyed by path; missing entries are built from settings
        metrics: Optional metrics collector shared by all resources

    Returns:
        Entity resources in definition order
    """
    definitions = RESOURCE_DEFINITIONS if definitions is None else definitions
    stores = stores or {}
    operation_logger = (
        OperationLogger(get_logger("resource_api.operations"))
        if settings.log_operations
        else None
    )

    resources = []
    for definition in definitions:
        store = stores.get(definition.path) or build_store(definition, settings)
        resources.append(
            EntityResource(
                entity_type=definition.entity_type,
                entity_name=definition.entity_name,
                path=definition.path,
                store=store,
                settings=settings,
                operation_logger=operation_logger,
                metrics=metrics,
            )
        )

    return resources
