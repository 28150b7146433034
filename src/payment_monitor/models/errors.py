"""Standard error codes for the payment failure monitor.

Only errors that reach an HTTP caller live here. Sink and enrichment
failures are reported as values (see ``DeliveryResult``) and never raised.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes returned in error response bodies."""

    INVALID_WEBHOOK_SIGNATURE = "ERR_WEBHOOK_SIGNATURE"
    INTERNAL_ERROR = "ERR_INTERNAL"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Webhook Error",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    details: Optional[dict[str, str]] = None


class MonitorError(Exception):
    """Exception raised for failures that are visible to the HTTP caller.

    ``reason`` is appended to the standard message, e.g.
    ``Webhook Error: No signatures found matching the expected signature``.
    """

    def __init__(
        self,
        code: ErrorCode,
        reason: str | None = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.reason = reason
        base = ERROR_MESSAGES[code]
        self.message = f"{base}: {reason}" if reason else base
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to a response body."""
        return ErrorResponse(
            error_code=self.code,
            message=self.message,
            details=self.details,
        )
