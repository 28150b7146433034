"""FastAPI exception handlers for converting MonitorError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: webhook signature could not be verified
- 500 Internal Server Error: unexpected failures

Usage:
    from payment_monitor.api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from payment_monitor.models.errors import ErrorCode, MonitorError
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.INTERNAL_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 500."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_500_INTERNAL_SERVER_ERROR)


async def monitor_error_handler(request: Request, exc: MonitorError) -> JSONResponse:
    """Convert a MonitorError into a JSON error response."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; internal details are not exposed."""
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "message": "An unexpected error occurred",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(MonitorError, monitor_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
