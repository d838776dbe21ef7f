"""Application factory for the media records service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_api.config import AppConfig, load_config
from media_api.db.base import get_engine
from media_api.db.migrations_runner import apply_migrations
from media_api.http.problem import (
    handle_http_exception,
    handle_record_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from media_api.http.request_id import RequestIdMiddleware
from media_api.logging_setup import configure_logging
from media_api.logic.document_store import DocumentStore, InMemoryDocumentStore
from media_api.logic.errors import RecordError
from media_api.logic.repository_records import SqlDocumentStore
from media_api.logic.upstream import UpstreamFetcher
from media_api.middleware.preconditions import PreconditionsMiddleware
from media_api.routes import api_router

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> DocumentStore:
    """Create the process-wide store handle described by `config`."""
    if config.store.backend == "memory":
        logger.info("store.selected", extra={"backend": "memory"})
        return InMemoryDocumentStore()
    engine = get_engine(config.store.dsn)
    if config.store.auto_migrate:
        apply_migrations(engine)
    logger.info("store.selected", extra={"backend": "sql", "dialect": engine.dialect.name})
    return SqlDocumentStore(engine)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[DocumentStore] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    cfg = config or load_config()
    configure_logging(cfg.logging.level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.store.close()

    app = FastAPI(title="Media Records Service", version="0.1.0", lifespan=lifespan)
    app.state.config = cfg
    app.state.store = store or build_store(cfg)
    app.state.fetcher = UpstreamFetcher(cfg.upstream.timeout_seconds, transport=upstream_transport)

    app.add_middleware(PreconditionsMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(RecordError, handle_record_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "ok", "store": cfg.store.backend}

    return app


def serve() -> None:
    """Entry point of the `media-records-service` console script."""
    cfg = load_config()
    # log_config=None keeps the dictConfig applied by create_app
    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port, log_config=None)


__all__ = ["build_store", "create_app", "serve"]
