"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that turn engine
errors, request validation failures and unexpected exceptions into
application/problem+json responses.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from linked_fields.errors import ConfigurationError, LinkedFieldError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)

_TITLES = {400: "Bad Request", 404: "Not Found", 422: "Invalid Request", 500: "Internal Server Error"}


def problem(status: int, detail: str, code: str | None = None, **extra) -> JSONResponse:
    body: dict = {"title": _TITLES.get(status, "Error"), "status": status, "detail": detail}
    if code is not None:
        body["code"] = code
    body.update(extra)
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_linked_field_error(request: Request, exc: LinkedFieldError) -> JSONResponse:  # noqa: D401
    if isinstance(exc, ConfigurationError):
        # Server fault: static configuration and code disagree
        logger.error("linked_field_configuration_error path=%s code=%s", request.url.path, exc.code, exc_info=exc)
    else:
        logger.info("linked_field_client_error path=%s code=%s detail=%s", request.url.path, exc.code, exc.message)
    return problem(exc.status, exc.message, exc.code)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        return JSONResponse(exc.detail, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    return problem(status, str(exc.detail or ""))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    return problem(422, "Request validation failed", errors=jsonable_encoder(exc.errors()))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem",
    "handle_linked_field_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
