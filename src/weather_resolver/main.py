"""ASGI app factory and uvicorn launcher."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from weather_resolver import __version__
from weather_resolver.api.dependencies import reset_singletons
from weather_resolver.api.routes import api_router, health_router
from weather_resolver.config import get_settings
from weather_resolver.middleware.logging import LoggingMiddleware, configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Unsubscribe from the provider store and drop cached lookups
    reset_singletons()


def create_app() -> FastAPI:
    """Build the resolver app: weather and health routes plus /metrics."""
    configure_logging(get_settings())

    app = FastAPI(
        title="Weather Resolver API",
        description="Best-effort weather for a place or coordinates, with provider fallback",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(LoggingMiddleware)
    for router in (api_router, health_router):
        app.include_router(router)
    app.mount("/metrics", make_asgi_app())
    return app


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn (the ``weather-resolver`` console script)."""
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )
