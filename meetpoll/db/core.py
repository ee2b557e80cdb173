"""Core database connection pool management."""

import logging
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from meetpoll.config import get_settings
from meetpoll.errors import StorageError

_logger = logging.getLogger(__name__)

# Global connection pool
_pool: AsyncConnectionPool | None = None


def _get_dsn() -> str:
    """Get DSN from settings."""
    return get_settings().postgres.get_dsn()


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return
    settings = get_settings().postgres
    dsn = settings.get_dsn()
    _pool = AsyncConnectionPool(
        dsn,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        reconnect_timeout=settings.pool_reconnect_timeout,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await _pool.open()
    _logger.info(
        "Database connection pool initialized (min=%d, max=%d, timeout=%ds)",
        settings.pool_min_size,
        settings.pool_max_size,
        settings.pool_timeout,
    )
    # migrations imports this module
    from meetpoll.db.migrations import ensure_schema

    await ensure_schema()


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        _logger.info("Database connection pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True):
    """Yield a connection from the pool, or a direct one when no pool is open.

    Any psycopg error raised while the connection is in use surfaces as
    StorageError. Multi-statement writes wrap themselves in
    ``conn.transaction()``.
    """
    try:
        if _pool is not None:
            async with _pool.connection() as conn:
                await conn.set_autocommit(autocommit)
                yield conn
        else:
            dsn = _get_dsn()
            async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
                yield conn
    except psycopg.Error as e:
        _logger.error("Database operation failed: %s", e)
        raise StorageError(cause=type(e).__name__) from e


def get_pool_stats() -> dict[str, object]:
    """Get current pool statistics for monitoring."""
    if _pool is None:
        return {"status": "not_initialized"}
    stats = _pool.get_stats()
    return {
        "status": "active",
        "size": stats["pool_size"],
        "available": stats["pool_available"],
        "waiting": stats["requests_waiting"],
        "min_size": stats["pool_min"],
        "max_size": stats["pool_max"],
    }


async def check_database() -> bool:
    """Run a trivial query; False when the database cannot be reached."""
    try:
        async with _get_connection() as conn:
            await conn.execute("SELECT 1")
        return True
    except StorageError:
        return False


__all__ = [
    "_get_connection",
    "_get_dsn",
    "check_database",
    "close_pool",
    "get_pool_stats",
    "init_pool",
]
