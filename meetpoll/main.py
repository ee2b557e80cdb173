import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meetpoll.config import get_settings
from meetpoll.controllers.events import router as events_router
from meetpoll.controllers.health import router as health_router
from meetpoll.errors import register_exception_handlers
from meetpoll.lifespan import cleanup_resources, setup_resources
from meetpoll.middleware import HTTPLogMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.logging.level,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)


app = FastAPI(title="meetpoll", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("meetpoll.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(events_router)
