"""
Generic REST resource for identifiable entities.

One ``EntityResource`` serves one entity type under
``{api_prefix}/{path}``:

- POST   /{path}        create (id must be null)      -> 201 + Location
- PUT    /{path}        update (id must be set)       -> 200
- GET    /{path}        list one page                 -> 200 + X-Total-Count, Link
- GET    /{path}/{id}   fetch one                     -> 200 or 404
- DELETE /{path}/{id}   delete, idempotent            -> 204

Each operation is a single call to the entity store. Id checks happen before
the store is touched; store failures propagate unchanged.
"""

import structlog
from contextlib import ExitStack, contextmanager
from typing import Any, Generic, Iterator, List, Optional, Type

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.datastructures import URL

from resource_api.src.config import Settings
from resource_api.src.dependencies import get_pageable
from resource_api.src.errors import BadRequestAlertError
from resource_api.src.models.errors import AlertErrorResponse
from resource_api.src.models.pagination import Pageable
from resource_api.src.repositories.base import EntityStore, EntityT
from resource_api.src.utils.headers import (
    create_entity_creation_alert,
    create_entity_deletion_alert,
    create_entity_update_alert,
)
from resource_api.src.utils.pagination import generate_pagination_headers
from shared.logging import OperationLogger
from shared.metrics import ResourceMetrics

logger = structlog.get_logger(__name__)


class EntityResource(Generic[EntityT]):
    """CRUD resource binding one entity type to an entity store."""

    def __init__(
        self,
        entity_type: Type[EntityT],
        entity_name: str,
        path: str,
        store: EntityStore[EntityT],
        settings: Settings,
        operation_logger: Optional[OperationLogger] = None,
        metrics: Optional[ResourceMetrics] = None,
    ):
        """
        Initialize entity resource.

        Args:
            entity_type: Entity model class
            entity_name: Name used in alert headers and error bodies
            path: URL path segment, e.g. "category-trees"
            store: Entity store the resource delegates to
            settings: Application settings
            operation_logger: Optional structured logger wrapped around each operation
            metrics: Optional metrics collector
        """
        self.entity_type = entity_type
        self.entity_name = entity_name
        self.path = path.strip("/")
        self.store = store
        self.settings = settings
        self.operation_logger = operation_logger
        self.metrics = metrics

    @property
    def resource_path(self) -> str:
        return f"{self.settings.api_prefix}/{self.path}"

    @contextmanager
    def _track(self, operation: str, **context: Any) -> Iterator[None]:
        with ExitStack() as stack:
            if self.metrics is not None:
                stack.enter_context(self.metrics.track_operation(self.entity_name, operation))
            if self.operation_logger is not None:
                stack.enter_context(
                    self.operation_logger.operation(
                        f"entity_{operation}", entity=self.entity_name, **context
                    )
                )
            yield

    def _alert_args(self, entity_id: Any) -> tuple:
        return (
            self.settings.client_app_name,
            self.settings.enable_translation,
            self.entity_name,
            str(entity_id),
        )

    def _sortable(self, pageable: Pageable) -> Pageable:
        allowed = self.entity_type.sortable_properties()
        kept = [order for order in pageable.sort if order.property in allowed]

        if len(kept) != len(pageable.sort):
            logger.warning(
                "sort_properties_ignored",
                entity=self.entity_name,
                ignored=[o.property for o in pageable.sort if o.property not in allowed]
            )
            return pageable.model_copy(update={"sort": kept})

        return pageable

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    async def create_entity(self, entity: EntityT) -> JSONResponse:
        with self._track("create"):
            if entity.id is not None:
                raise BadRequestAlertError(
                    f"A new {self.entity_name} cannot already have an ID",
                    self.entity_name,
                    "idexists"
                )

            result = await self.store.save(entity)

        headers = create_entity_creation_alert(*self._alert_args(result.id))
        headers["Location"] = f"{self.resource_path}/{result.id}"

        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=jsonable_encoder(result),
            headers=headers
        )

    async def update_entity(self, entity: EntityT) -> JSONResponse:
        with self._track("update", entity_id=entity.id):
            if entity.id is None:
                raise BadRequestAlertError("Invalid id", self.entity_name, "idnull")

            result = await self.store.save(entity)

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=jsonable_encoder(result),
            headers=create_entity_update_alert(*self._alert_args(entity.id))
        )

    async def list_entities(self, pageable: Pageable, url: URL) -> JSONResponse:
        pageable = self._sortable(pageable)

        with self._track("list", page=pageable.page, size=pageable.size):
            page = await self.store.find_page(pageable)

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=jsonable_encoder(page.content),
            headers=generate_pagination_headers(url, page)
        )

    async def get_entity(self, entity_id: int) -> Response:
        with self._track("get", entity_id=entity_id):
            entity = await self.store.find_by_id(entity_id)

        if entity is None:
            return Response(status_code=status.HTTP_404_NOT_FOUND)

        return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder(entity))

    async def delete_entity(self, entity_id: int) -> Response:
        with self._track("delete", entity_id=entity_id):
            await self.store.delete_by_id(entity_id)

        return Response(
            status_code=status.HTTP_204_NO_CONTENT,
            headers=create_entity_deletion_alert(*self._alert_args(entity_id))
        )

    # ========================================================================
    # ROUTER
    # ========================================================================

    def build_router(self) -> APIRouter:
        """Build the APIRouter exposing this resource's endpoints."""
        entity_type = self.entity_type
        name = self.entity_type.__name__

        router = APIRouter(
            prefix=f"/{self.path}",
            tags=[name],
            responses={
                400: {"model": AlertErrorResponse, "description": "Invalid identifier"},
                422: {"description": "Validation Error"}
            }
        )

        async def create(entity: entity_type) -> Response:
            return await self.create_entity(entity)

        async def update(entity: entity_type) -> Response:
            return await self.update_entity(entity)

        async def list_all(request: Request, pageable: Pageable = Depends(get_pageable)) -> Response:
            return await self.list_entities(pageable, request.url)

        async def get_one(entity_id: int) -> Response:
            return await self.get_entity(entity_id)

        async def delete(entity_id: int) -> Response:
            return await self.delete_entity(entity_id)

        router.add_api_route(
            "",
            create,
            methods=["POST"],
            response_model=entity_type,
            status_code=status.HTTP_201_CREATED,
            summary=f"Create {name}",
            name=f"create_{self.path}",
        )
        router.add_api_route(
            "",
            update,
            methods=["PUT"],
            response_model=entity_type,
            status_code=status.HTTP_200_OK,
            summary=f"Update {name}",
            name=f"update_{self.path}",
        )
        router.add_api_route(
            "",
            list_all,
            methods=["GET"],
            response_model=List[entity_type],
            status_code=status.HTTP_200_OK,
            summary=f"List {name} page",
            name=f"list_{self.path}",
        )
        router.add_api_route(
            "/{entity_id}",
            get_one,
            methods=["GET"],
            response_model=entity_type,
            status_code=status.HTTP_200_OK,
            summary=f"Get {name}",
            name=f"get_{self.path}",
            responses={404: {"description": f"{name} not found"}},
        )
        router.add_api_route(
            "/{entity_id}",
            delete,
            methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT,
            summary=f"Delete {name}",
            name=f"delete_{self.path}",
        )

        return router
