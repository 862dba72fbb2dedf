"""Error Handlers — render moderation failures as one JSON error envelope.

Invariants:
    - Every non-2xx body outside the propagation endpoints is {"error": {...}}
      with code, message, category and severity
    - Role vetoes (PolicyBlockedError) list the blocking users by id, username
      and role; identifier hashes never appear in an error body
    - Log records carry actor_id, target_user_id and operation from the error
      context, so a rejected moderation action is traceable without the body
    - Unhandled exceptions become INTERNAL_ERROR and never leak internals

Design Decisions:
    - Framework HTTPExceptions (missing X-Actor-Id, unknown route) are wrapped in
      the same envelope so clients parse one error shape
    - Log level follows http_status: 5xx is an error, guard and policy rejections
      are warnings
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catwatch.core.errors import CatwatchError, ErrorSeverity, PolicyBlockedError

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: ("AUTHENTICATION_REQUIRED", "permission"),
    status.HTTP_404_NOT_FOUND: ("ROUTE_NOT_FOUND", "resource_not_found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "validation"),
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_catwatch_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _log_extra(request: Request, exc: CatwatchError) -> dict:
    return {
        "error_code": exc.code,
        "path": request.url.path,
        "actor_id": exc.context.actor_id,
        "target_user_id": exc.context.target_user_id,
        "operation": exc.context.operation,
    }


def build_error_body(exc: CatwatchError) -> dict:
    """Envelope for a CatwatchError; policy vetoes name who blocked them."""
    body = exc.to_response()
    if isinstance(exc, PolicyBlockedError):
        body["error"]["policy_mode"] = exc.mode
        body["error"]["blocking_users"] = [
            {"id": u.id, "username": u.username, "role": u.role.value}
            for u in exc.blocking_users
        ]
    return body


def _register_catwatch_error_handler(app: FastAPI) -> None:

    @app.exception_handler(CatwatchError)
    async def catwatch_error_handler(request: Request, exc: CatwatchError):
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{exc.context.operation or 'request'} failed: {exc.message}",
            extra=_log_extra(request, exc),
        )
        return JSONResponse(
            status_code=exc.http_status, content=build_error_body(exc),
        )


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code, category = _HTTP_ERROR_CODES.get(
            exc.status_code, ("HTTP_ERROR", "validation"),
        )
        logger.info(
            f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
            extra={"error_code": code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": code,
                    "message": str(exc.detail),
                    "category": category,
                    "severity": ErrorSeverity.WARNING.value,
                },
            },
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all; the body never carries the exception text."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True, extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Field-level details: dotted location, message and pydantic error type."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
