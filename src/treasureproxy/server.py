"""HTTP entry point.

Builds the FastAPI application around one ``AppState``. The lifespan owns
every long-lived resource: the upstream HTTP client, the cache and the
sweeper task are created on startup and torn down on shutdown, so each app
instance (and each test) starts from an empty cache.

Run with ``python -m treasureproxy.server`` or the ``treasureproxy`` script.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from treasureproxy import __version__
from treasureproxy.cache import HourBucketCache
from treasureproxy.config import LoggingSettings, Settings
from treasureproxy.errors import TreasureProxyError
from treasureproxy.fetcher import Fetcher, build_http_client
from treasureproxy.handlers import treasure
from treasureproxy.models.api import ErrorOutput, HealthOutput
from treasureproxy.state import AppState
from treasureproxy.sweeper import CacheSweeper

log = structlog.get_logger()


def setup_logging(settings: LoggingSettings) -> None:
    """Configure structlog to write to stderr at the configured level."""
    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[settings.level]
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cache = HourBucketCache(
            retention_hours=settings.cache.retention_hours,
            max_buckets=settings.cache.max_buckets,
        )
        sweeper = CacheSweeper(cache, settings.cache.sweep_interval_seconds)
        async with build_http_client(settings.upstream) as client:
            app.state.app_state = AppState(
                settings=settings,
                cache=cache,
                http_client=client,
                fetcher=Fetcher(client, settings.upstream),
                sweeper=sweeper,
            )
            sweeper.start()
            log.info("server_started", version=__version__, upstream=settings.upstream.url_template)
            try:
                yield
            finally:
                await sweeper.stop()
                log.info("server_stopped", cached_buckets=len(cache))

    app = FastAPI(title="treasureproxy", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> HealthOutput:
        return HealthOutput(message="Backend server is running")

    @app.get("/api/treasure/{identifier}")
    async def get_treasure(identifier: str, request: Request) -> JSONResponse:
        state: AppState = request.app.state.app_state
        try:
            payload = await treasure.handle(identifier, state)
        except TreasureProxyError as exc:
            log.info("request_rejected", id=identifier, code=exc.code, status_code=exc.status_code)
            return JSONResponse(exc.to_payload(), status_code=exc.status_code)
        except Exception as exc:
            log.error("proxy_error", id=identifier, exc_info=True)
            body = ErrorOutput(error="Internal server error", message=str(exc))
            return JSONResponse(body.model_dump(), status_code=500)
        return JSONResponse(payload)

    return app


def main() -> None:
    settings = Settings()
    setup_logging(settings.logging)
    log.info(
        "server_starting",
        host=settings.server.host,
        port=settings.server.port,
        proxy_endpoint="/api/treasure/{id}",
    )
    uvicorn.run(create_app(settings), host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
