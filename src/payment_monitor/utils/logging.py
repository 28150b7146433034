"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper for webhook event logging

Usage:
    from payment_monitor.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Processing failed payment", extra={"payment_id": "pi_123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None outside a request."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes every line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Prefix makes grep by request trivial
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; an existing handler is reused.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    payment_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a webhook event with structured context.

    Args:
        logger: Logger instance
        event_type: Stripe event type (e.g., "payment_intent.payment_failed")
        event_id: Stripe event ID
        payment_id: PaymentIntent, charge or invoice ID if available
        result: Processing result (received, processed, logged, unhandled, error)
        error: Error message if processing failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "event_type": event_type,
        "event_id": event_id,
    }

    if payment_id:
        context["payment_id"] = payment_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Webhook event: {event_type} ({event_id})"]
    if result:
        msg_parts.append(f"result={result}")
    if payment_id:
        msg_parts.append(f"payment={payment_id}")
    if error:
        msg_parts.append(f"error={error}")

    message = " | ".join(msg_parts)

    if result == "error":
        logger.error(message, extra=context)
    elif result in ("unhandled", "skipped"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
