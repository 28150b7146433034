"""Pydantic models for the payment failure monitor."""

from .activity import LogEntry, LogSeverity
from .errors import ERROR_MESSAGES, ErrorCode, ErrorResponse, MonitorError
from .failure import (
    UNKNOWN_CUSTOMER,
    UNKNOWN_EMAIL,
    UNKNOWN_ERROR,
    CustomerContact,
    DeliveryResult,
    FailureRecord,
    NotificationResult,
)

__all__ = [
    # Activity log
    "LogEntry",
    "LogSeverity",
    # Failures
    "CustomerContact",
    "DeliveryResult",
    "FailureRecord",
    "NotificationResult",
    "UNKNOWN_CUSTOMER",
    "UNKNOWN_EMAIL",
    "UNKNOWN_ERROR",
    # Errors
    "ERROR_MESSAGES",
    "ErrorCode",
    "ErrorResponse",
    "MonitorError",
]
