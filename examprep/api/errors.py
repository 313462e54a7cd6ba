from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from examprep.core.errors import DomainError, ErrorKind

logger = structlog.get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.FORBIDDEN_BY_POLICY: status.HTTP_403_FORBIDDEN,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_body(kind: ErrorKind, message: str, field_errors: dict[str, str] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"kind": kind.value, "message": message}
    if field_errors:
        body["fieldErrors"] = field_errors
    return body


def _field_path(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in {"body", "query", "path", "header"}]
    return ".".join(parts) or "request"


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.kind == ErrorKind.INTERNAL:
        logger.error("request_failed", path=request.url.path, error_type=type(exc).__name__, exc_info=exc)
        return JSONResponse(
            status_code=STATUS_BY_KIND[ErrorKind.INTERNAL],
            content=error_body(ErrorKind.INTERNAL, "Internal error"),
        )
    return JSONResponse(
        status_code=STATUS_BY_KIND[exc.kind],
        content=error_body(exc.kind, exc.message, exc.field_errors),
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        field_errors.setdefault(_field_path(tuple(error.get("loc", ()))), str(error.get("msg", "invalid")))
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.VALIDATION],
        content=error_body(ErrorKind.VALIDATION, "Invalid request", field_errors),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request_failed", path=request.url.path, error_type=type(exc).__name__, exc_info=exc)
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.INTERNAL],
        content=error_body(ErrorKind.INTERNAL, "Internal error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
