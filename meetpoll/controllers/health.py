from typing import Any, Dict

from fastapi import APIRouter

from meetpoll import db
from meetpoll.config import get_settings

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, Any]:
    if not get_settings().features.database:
        return {"status": "ok", "database": "disabled"}

    if not await db.check_database():
        return {"status": "ok", "database": "unhealthy"}

    schema_version = await db.get_current_version()
    return {
        "status": "ok",
        "database": "healthy",
        "schema_version": schema_version,
        "pool": db.get_pool_stats(),
    }
