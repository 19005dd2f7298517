import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nextplay.api import (
    careers,
    changes,
    chat,
    conversations,
    health,
    journal,
    profiles,
    stories,
)
from nextplay.core.exceptions import NextPlayError
from nextplay.core.logging import configure_logging
from nextplay.core.settings import get_settings
from nextplay.db import get_engine, init_db
from nextplay.dependencies import get_gateway_client

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)
    if settings.environment == "local":
        init_db(get_engine())

    yield

    # Only close the gateway client if a request created it.
    if get_gateway_client.cache_info().currsize:
        await get_gateway_client().aclose()


async def handle_nextplay_error(request: Request, exc: NextPlayError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    app.add_exception_handler(NextPlayError, handle_nextplay_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(chat.router, prefix="/api/v1")
    app.include_router(conversations.router, prefix="/api/v1")
    app.include_router(journal.router, prefix="/api/v1")
    app.include_router(profiles.router, prefix="/api/v1")
    app.include_router(careers.router, prefix="/api/v1")
    app.include_router(stories.router, prefix="/api/v1")
    app.include_router(changes.router, prefix="/api/v1")

    app.include_router(health.router)

    return app


app = create_app()
