"""
PostgreSQL entity store.

Persists each entity type in its own table holding the store-assigned id and
the entity payload as a JSONB document:

    CREATE TABLE <table> (id BIGSERIAL PRIMARY KEY, data JSONB NOT NULL)

Uses asyncpg with a connection pool obtained lazily from a provider so the
store can be constructed before the pool exists (pools are created in the
application lifespan).
"""

import asyncpg
import json
import re
import structlog
from typing import Callable, List, Optional, Type

from resource_api.src.errors import StoreError
from resource_api.src.models.pagination import Page, Pageable, SortOrder
from resource_api.src.repositories.base import EntityStore, EntityT

logger = structlog.get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

PoolProvider = Callable[[], asyncpg.Pool]


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def build_order_by(orders: List[SortOrder]) -> str:
    """
    Build an ORDER BY clause for the given sort orders.

    ``id`` sorts on the primary key column; any other property sorts on the
    JSONB value, which orders numbers numerically and strings lexically.
    The primary key is always appended as a final tie-breaker.
    """
    terms = []
    for order in orders:
        prop = _check_identifier(order.property)
        column = "id" if prop == "id" else f"data->'{prop}'"
        if order.descending:
            terms.append(f"{column} DESC NULLS LAST")
        else:
            terms.append(f"{column} ASC NULLS FIRST")

    if not any(order.property == "id" for order in orders):
        terms.append("id ASC")

    return "ORDER BY " + ", ".join(terms)


class PostgresEntityStore(EntityStore[EntityT]):
    """Entity store backed by a PostgreSQL JSONB document table."""

    def __init__(self, entity_type: Type[EntityT], table: str, pool_provider: PoolProvider):
        """
        Initialize PostgreSQL entity store.

        Args:
            entity_type: Entity model class
            table: Table name (validated as a plain SQL identifier)
            pool_provider: Callable returning the asyncpg connection pool
        """
        super().__init__(entity_type)
        self.table = _check_identifier(table)
        self._pool_provider = pool_provider

    @property
    def pool(self) -> asyncpg.Pool:
        return self._pool_provider()

    @property
    def _advance_sequence_sql(self) -> str:
        sequence = f"pg_get_serial_sequence('{self.table}', 'id')::regclass"
        return (
            f"SELECT setval({sequence}, "
            f"GREATEST($1::bigint, COALESCE(pg_sequence_last_value({sequence}), 1)))"
        )

    def _to_entity(self, row) -> EntityT:
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return self.entity_type.model_validate({**data, "id": row["id"]})

    async def ensure_table(self) -> None:
        """Create the entity table if it does not exist."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        id BIGSERIAL PRIMARY KEY,
                        data JSONB NOT NULL
                    )
                    """
                )
            logger.info("entity_table_ready", table=self.table)
        except asyncpg.PostgresError as e:
            logger.error("entity_table_create_failed", table=self.table, error=str(e))
            raise StoreError(f"Failed to create table {self.table}") from e

    async def save(self, entity: EntityT) -> EntityT:
        document = json.dumps(entity.document())

        try:
            async with self.pool.acquire() as conn:
                if entity.id is None:
                    row = await conn.fetchrow(
                        f"""
                        INSERT INTO {self.table} (data)
                        VALUES ($1::jsonb)
                        RETURNING id, data
                        """,
                        document
                    )
                else:
                    async with conn.transaction():
                        row = await conn.fetchrow(
                            f"""
                            INSERT INTO {self.table} (id, data)
                            VALUES ($1, $2::jsonb)
                            ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data
                            RETURNING id, data
                            """,
                            entity.id,
                            document
                        )
                        # Keep nextval() ahead of explicitly supplied ids.
                        await conn.fetchval(self._advance_sequence_sql, entity.id)
        except asyncpg.IntegrityConstraintViolationError as e:
            logger.warning("entity_save_conflict", table=self.table, entity_id=entity.id, error=str(e))
            raise StoreError(str(e), status_code=409) from e
        except asyncpg.PostgresError as e:
            logger.error("entity_save_failed", table=self.table, entity_id=entity.id, error=str(e))
            raise StoreError(f"Failed to save entity in {self.table}") from e

        logger.debug("entity_saved", table=self.table, entity_id=row["id"])
        return self._to_entity(row)

    async def find_by_id(self, entity_id: int) -> Optional[EntityT]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT id, data FROM {self.table} WHERE id = $1",
                    entity_id
                )
        except asyncpg.PostgresError as e:
            logger.error("entity_get_failed", table=self.table, entity_id=entity_id, error=str(e))
            raise StoreError(f"Failed to load entity {entity_id} from {self.table}") from e

        if not row:
            logger.debug("entity_not_found", table=self.table, entity_id=entity_id)
            return None

        return self._to_entity(row)

    async def find_page(self, pageable: Pageable) -> Page[EntityT]:
        order_by = build_order_by(pageable.sort)

        try:
            async with self.pool.acquire() as conn:
                total = await conn.fetchval(f"SELECT COUNT(*) FROM {self.table}")
                rows = await conn.fetch(
                    f"""
                    SELECT id, data
                    FROM {self.table}
                    {order_by}
                    LIMIT $1 OFFSET $2
                    """,
                    pageable.size,
                    pageable.offset
                )
        except asyncpg.PostgresError as e:
            logger.error(
                "entity_list_failed",
                table=self.table,
                page=pageable.page,
                size=pageable.size,
                error=str(e)
            )
            raise StoreError(f"Failed to list entities from {self.table}") from e

        return Page(
            content=[self._to_entity(row) for row in rows],
            pageable=pageable,
            total_elements=total or 0,
        )

    async def delete_by_id(self, entity_id: int) -> None:
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    f"DELETE FROM {self.table} WHERE id = $1",
                    entity_id
                )
        except asyncpg.PostgresError as e:
            logger.error("entity_delete_failed", table=self.table, entity_id=entity_id, error=str(e))
            raise StoreError(f"Failed to delete entity {entity_id} from {self.table}") from e

        if result.split()[-1] == "1":
            logger.debug("entity_deleted", table=self.table, entity_id=entity_id)

    async def ping(self) -> bool:
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.error("entity_store_ping_failed", table=self.table, error=str(e))
            return False
