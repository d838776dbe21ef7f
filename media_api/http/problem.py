"""Problem+JSON utilities and global exception handlers.

Defines the RFC 7807 media type and the handler callables registered by
`create_app`. Record-core errors carry their own problem bodies; transient
ones are logged as warnings so infrastructure trouble stands out.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_api.logic.errors import RecordError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


async def handle_record_error(request: Request, exc: RecordError) -> JSONResponse:  # noqa: D401
    problem = exc.to_problem()
    log = logger.warning if exc.transient else logger.info
    log(
        "error_handler.handle",
        extra={"code": exc.code, "status": exc.status, "path": request.url.path, "method": request.method},
    )
    return JSONResponse(jsonable_encoder(problem), status_code=exc.status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {
            "title": "Error",
            "status": status_code,
            "detail": str(exc.detail or ""),
            "code": f"HTTP_{status_code}",
            "transient": status_code >= 500,
        }
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(
        jsonable_encoder(detail),
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers or None,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "REQUEST_VALIDATION_FAILED",
        "transient": False,
        "errors": jsonable_encoder(exc.errors()),
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        {
            "title": "Internal Server Error",
            "status": 500,
            "detail": "unexpected error",
            "code": "INTERNAL_ERROR",
            "transient": False,
        },
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_record_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
