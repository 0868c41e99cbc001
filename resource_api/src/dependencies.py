"""
FastAPI dependency injection for database pool, settings and pagination.

Provides injectable dependencies for:
- Database connection pool (asyncpg) lifecycle
- Application settings bound to the running app
- Pagination parameters resolved from the query string

All dependencies use FastAPI's dependency injection system and are designed
to be composable and testable.
"""

import asyncpg
import structlog
from typing import List, Optional
from fastapi import Depends, Query, Request

from resource_api.src.config import get_settings, Settings
from resource_api.src.models.pagination import Pageable, parse_sort

logger = structlog.get_logger(__name__)


# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool(settings: Optional[Settings] = None) -> asyncpg.Pool:
    """
    Initialize database connection pool.

    Should be called during application startup.

    Returns:
        asyncpg connection pool
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = settings or get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=max(settings.database_pool_size // 2, 1),
            max_size=settings.database_pool_size,
            command_timeout=settings.database_pool_timeout
        )

        logger.info(
            "database_pool_initialized",
            pool_size=settings.database_pool_size,
            database=settings.database_url.split("@")[-1]
        )

        return _pool

    except (asyncpg.PostgresError, OSError) as e:
        logger.error("database_pool_init_failed", error=str(e))
        raise


async def close_db_pool():
    """
    Close database connection pool.

    Should be called during application shutdown.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        logger.info("database_pool_closed")
        _pool = None


def get_db_pool() -> asyncpg.Pool:
    """
    Get database connection pool.

    Returns:
        asyncpg connection pool

    Raises:
        RuntimeError: If pool is not initialized
    """
    if _pool is None:
        logger.error("database_pool_not_initialized")
        raise RuntimeError(
            "Database pool not initialized. Call init_db_pool() during startup."
        )
    return _pool


# ============================================================================
# UTILITY DEPENDENCIES
# ============================================================================


def get_app_settings(request: Request) -> Settings:
    """
    Get the settings the running application was built with.

    Falls back to the cached environment settings when the app carries none.
    """
    return getattr(request.app.state, "settings", None) or get_settings()


# ============================================================================
# PAGINATION DEPENDENCIES
# ============================================================================


def resolve_pageable(
    settings: Settings,
    page: int = 0,
    size: Optional[int] = None,
    sort: Optional[List[str]] = None
) -> Pageable:
    """
    Build a pageable from raw query values.

    Negative pages clamp to 0, sizes below 1 fall back to the default
    size and sizes above the maximum clamp to the maximum.
    """
    if page < 0:
        page = 0

    if size is None or size < 1:
        size = settings.pagination_default_size
    elif size > settings.pagination_max_size:
        size = settings.pagination_max_size

    return Pageable(page=page, size=size, sort=parse_sort(sort))


async def get_pageable(
    page: int = Query(0, description="0-based page number"),
    size: Optional[int] = Query(None, description="Page size"),
    sort: Optional[List[str]] = Query(
        None,
        description="Sort order: property[,asc|desc]; repeatable"
    ),
    settings: Settings = Depends(get_app_settings)
) -> Pageable:
    """
    Get pagination parameters from query string.

    Example:
        GET /api/category-trees?page=1&size=10&sort=name,desc
    """
    return resolve_pageable(settings, page=page, size=size, sort=sort)
