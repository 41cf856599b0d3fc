from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from linked_fields.config import load_config
from linked_fields.db.base import dispose_engines, get_engine
from linked_fields.db.schema import create_schema
from linked_fields.errors import LinkedFieldError
from linked_fields.http.problem import (
    handle_http_exception,
    handle_linked_field_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from linked_fields.logging_setup import configure_logging
from linked_fields.routes import api_router

logger = logging.getLogger(__name__)


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def create_app() -> FastAPI:
    config = load_config()
    configure_logging(sql_echo=config.database.echo)
    app = FastAPI(title="Linked Field Service")

    app.add_exception_handler(LinkedFieldError, handle_linked_field_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.on_event("startup")
    async def _create_schema() -> None:  # pragma: no cover - exercised via local runs
        # Production schemas are managed outside the service; opt in for local development
        if not _flag("AUTO_CREATE_SCHEMA"):
            logger.info("AUTO_CREATE_SCHEMA disabled; skipping schema creation at startup")
            return
        try:
            await create_schema(get_engine(config.database.dsn, echo=config.database.echo))
        except Exception:
            logger.error("Failed to create schema at startup", exc_info=True)
            raise

    @app.on_event("shutdown")
    async def _dispose_engines() -> None:  # pragma: no cover - trivial
        await dispose_engines()

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return {"status": "ok"}

    return app


__all__ = ["create_app"]
