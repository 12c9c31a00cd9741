# autocompleted/main.py
# Responsibility: Application entry point. Configures and launches the FastAPI app.

import json
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from loguru import logger

from autocompleted.config.logging import setup_logging
from autocompleted.config.settings import settings
from autocompleted.routers import autocomplete
from autocompleted.services.autocomplete_service import AutocompleteService
from autocompleted.services.db import create_pool
from autocompleted.services.errors import AutocompleteError, BadInput, ServerError
from autocompleted.services.redis_cache import RedisResultCache
from autocompleted.services.result_cache import MemoryResultCache

VERSION = "1.0.0"


def build_cache():
    """Selects the result cache backend from CACHE_BACKEND."""
    backend = settings.CACHE.BACKEND.lower()
    if backend == "redis":
        logger.info("Using Redis result cache at {}", settings.CACHE.REDIS_URL)
        return RedisResultCache()
    if backend != "memory":
        raise ValueError(f"Unknown cache backend: {settings.CACHE.BACKEND}")
    logger.info(
        "Using in-memory result cache (max_entries={}, ttl={}s)",
        settings.CACHE.MAX_ENTRIES,
        settings.CACHE.TTL_SECONDS,
    )
    return MemoryResultCache()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Builds the shared pool, cache and service once, unless one was injected."""
    pool = None
    if getattr(app.state, "autocomplete_service", None) is None:
        pool = create_pool()
        app.state.autocomplete_service = AutocompleteService(pool, build_cache())
    try:
        yield
    finally:
        if pool is not None:
            pool.close()


def default_headers() -> dict:
    return {
        "Access-Control-Allow-Origin": settings.SERVER.ALLOW_ORIGIN,
        "Access-Control-Allow-Headers": "Authorization",
    }


def error_response(error: AutocompleteError) -> Response:
    """
    Renders an error without exposing internal detail.
    Carries the default headers itself: the catch-all handler runs outside
    the http middleware that adds them to every other response.
    """
    return Response(
        content=json.dumps({"error": error.public_message}, separators=(",", ":")),
        status_code=error.status_code,
        media_type=autocomplete.JSON_MEDIA_TYPE,
        headers={"Cache-Control": "private; max-age=0", **default_headers()},
    )


def create_app(service: Optional[AutocompleteService] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Args:
        service: Pre-built AutocompleteService. When omitted, the lifespan
            builds one from settings at startup.
    """
    setup_logging(settings.SERVER.LOG_LEVEL, settings.SERVER.LOG_FILE)

    app = FastAPI(
        title="Tag Autocomplete",
        description="Tag name autocomplete backed by PostgreSQL.",
        version=VERSION,
        debug=settings.SERVER.DEBUG,
        lifespan=lifespan,
    )
    app.state.autocomplete_service = service

    # Register Routers
    app.include_router(autocomplete.router)

    # Error Rendering
    @app.exception_handler(AutocompleteError)
    async def autocomplete_error_handler(request: Request, exc: AutocompleteError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(BadInput("missing or invalid query parameter"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on {}", request.url.path)
        return error_response(ServerError())

    # Default Headers
    @app.middleware("http")
    async def add_default_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in default_headers().items():
            response.headers.setdefault(name, value)
        return response

    # Health Check
    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "ok", "version": VERSION}

    return app

# Application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "autocompleted.main:app",
        host=settings.SERVER.HOST,
        port=settings.SERVER.PORT,
        reload=settings.SERVER.DEBUG
    )
