"""
Error envelope and correlation ids for the HTTP surface.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledger.domain.errors import AppError, ErrorCategory

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def get_correlation_id(request: Request) -> str:
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id is None:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
    return correlation_id


def _envelope(status_code: int, error: dict, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers={CORRELATION_HEADER: correlation_id},
    )


def register_error_handlers(app: FastAPI) -> None:

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = get_correlation_id(request)
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        exc.correlation_id = get_correlation_id(request)
        level = logging.WARNING if exc.http_status < 500 else logging.ERROR
        logger.log(
            level,
            "%s %s failed: %s",
            request.method, request.url.path, exc.code,
            extra={"correlation_id": exc.correlation_id, "category": exc.category.value},
        )
        return _envelope(exc.http_status, exc.to_dict(), exc.correlation_id)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        correlation_id = get_correlation_id(request)
        violations = [
            {
                "code": "INVALID_INPUT",
                "message": error.get("msg", "Invalid value"),
                "fieldHints": [".".join(str(p) for p in error.get("loc", ()) if p != "body")],
            }
            for error in exc.errors()
        ]
        return _envelope(
            400,
            {
                "code": "INVALID_INPUT",
                "message": "Request validation failed",
                "category": ErrorCategory.VALIDATION.value,
                "details": {"violations": violations},
                "correlationId": correlation_id,
            },
            correlation_id,
        )
