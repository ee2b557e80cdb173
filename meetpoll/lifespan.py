"""Application startup and shutdown.

Opens the database pool (running pending migrations) when the database
feature is enabled, and closes it again on shutdown.
"""

import logging
from dataclasses import dataclass

from meetpoll import db
from meetpoll.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    db_enabled: bool = False


async def init_database() -> bool:
    """Initialize the database connection pool.

    Returns:
        True if the pool is open, False if disabled or unreachable.
    """
    if not get_settings().features.database:
        logger.info("Database disabled (ENABLE_DB=0)")
        return False
    try:
        await db.init_pool()
        return True
    except Exception as e:
        # Requests fall back to direct connections and report storage errors.
        logger.warning("Failed to initialize database: %s", e)
        return False


async def setup_resources() -> LifespanResources:
    """Set up all shared resources."""
    resources = LifespanResources()
    resources.db_enabled = await init_database()
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Release resources on shutdown."""
    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Failed to close database pool: %s", e)
