"""Webhook handler for Stripe payment failure events.

Provides the ingestion logic separate from HTTP routing concerns:
signature verification, event-type dispatch, customer enrichment and the
fan-out to the notification sinks.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from payment_monitor.models.errors import ErrorCode, MonitorError
from payment_monitor.models.failure import (
    UNKNOWN_ERROR,
    CustomerContact,
    FailureRecord,
    NotificationResult,
)
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.customer_lookup import CustomerLookup
from payment_monitor.services.notifier import FailureNotifier
from payment_monitor.services.stripe_service import StripeService, StripeServiceError
from payment_monitor.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"
CHARGE_FAILED = "charge.failed"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"


class WebhookOutcome(BaseModel):
    """What the handler did with a verified event."""

    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    event_type: str
    result: str  # "processed", "logged", "unhandled", "error"
    notification: NotificationResult | None = None


class WebhookHandler:
    """Handler for verified Stripe webhook events.

    Only ``payment_intent.payment_failed`` triggers notifications; charge and
    invoice failures are recorded in the activity log, anything else is
    logged as unhandled. Once the signature is verified the handler never
    raises, so Stripe always receives an acknowledgement.
    """

    def __init__(
        self,
        stripe_service: StripeService,
        customer_lookup: CustomerLookup,
        notifier: FailureNotifier,
        activity_log: ActivityLog,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._stripe = stripe_service
        self._customers = customer_lookup
        self._notifier = notifier
        self._log = activity_log
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._dispatch: dict[str, Callable[[dict[str, Any]], Awaitable[WebhookOutcome]]] = {
            PAYMENT_INTENT_FAILED: self._on_payment_intent_failed,
            CHARGE_FAILED: self._on_charge_failed,
            INVOICE_PAYMENT_FAILED: self._on_invoice_payment_failed,
        }

    def verify(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify the signature and parse the event envelope.

        Raises:
            MonitorError: INVALID_WEBHOOK_SIGNATURE when verification fails.
        """
        try:
            return self._stripe.verify_webhook_signature(payload, signature)
        except StripeServiceError as e:
            self._log.error(f"Webhook signature verification failed: {e}")
            raise MonitorError(ErrorCode.INVALID_WEBHOOK_SIGNATURE, reason=str(e)) from e

    async def handle(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        """Verify and process one webhook delivery.

        Args:
            payload: Raw request body, exactly as received.
            signature: Stripe-Signature header value.

        Raises:
            MonitorError: If the signature cannot be verified.
        """
        event = self.verify(payload, signature)
        event_type = event.get("type") or "unknown"
        event_id = event.get("id")

        self._log.info(f"Received webhook event: {event_type}")
        log_webhook_event(logger, event_type, event_id or "-", result="received")

        handler = self._dispatch.get(event_type)
        if handler is None:
            self._log.warning(f"Unhandled event type: {event_type}")
            return WebhookOutcome(event_id=event_id, event_type=event_type, result="unhandled")

        outcome = await handler(_event_object(event))
        return outcome.model_copy(update={"event_id": event_id})

    async def _on_payment_intent_failed(self, intent: dict[str, Any]) -> WebhookOutcome:
        notification = await self.process_failed_payment(intent)
        return WebhookOutcome(
            event_type=PAYMENT_INTENT_FAILED,
            result="processed" if notification is not None else "error",
            notification=notification,
        )

    async def _on_charge_failed(self, charge: dict[str, Any]) -> WebhookOutcome:
        self._log.info(f"Charge failed: {charge.get('id')}")
        return WebhookOutcome(event_type=CHARGE_FAILED, result="logged")

    async def _on_invoice_payment_failed(self, invoice: dict[str, Any]) -> WebhookOutcome:
        self._log.info(f"Invoice payment failed: {invoice.get('id')}")
        return WebhookOutcome(event_type=INVOICE_PAYMENT_FAILED, result="logged")

    async def process_failed_payment(self, intent: dict[str, Any]) -> NotificationResult | None:
        """Enrich a failed PaymentIntent and send it to both sinks.

        Returns:
            The sink outcomes, or None if the record could not be built.
            Errors are logged and never raised.
        """
        try:
            contact = await self._customers.resolve(intent.get("customer"))
            record = build_failure_record(intent, contact, self._clock())
        except Exception as e:
            self._log.error(f"Error processing failed payment: {e}")
            log_webhook_event(
                logger,
                PAYMENT_INTENT_FAILED,
                str(intent.get("id") or "-"),
                result="error",
                error=str(e),
            )
            return None

        self._log.info(
            f"Processing failed payment: {record.payment_id} for {record.customer_email}"
        )
        notification = await self._notifier.notify(record)
        self._log.info(f"Successfully processed failed payment: {record.payment_id}")
        log_webhook_event(
            logger,
            PAYMENT_INTENT_FAILED,
            record.payment_id,
            payment_id=record.payment_id,
            result="processed",
            email_sent=notification.email_sent,
            airtable_record_id=notification.airtable_record_id,
        )
        return notification


def build_failure_record(
    intent: dict[str, Any],
    contact: CustomerContact,
    failed_at: datetime,
) -> FailureRecord:
    """Normalize a PaymentIntent into a FailureRecord.

    ``failed_at`` is the processing time supplied by the caller, not the
    Stripe event's ``created`` timestamp.

    Raises:
        pydantic.ValidationError: If the intent lacks an ID, amount or currency.
    """
    last_error = intent.get("last_payment_error") or {}
    return FailureRecord(
        payment_id=intent.get("id") or "",
        customer_email=contact.email,
        customer_name=contact.name,
        amount=intent.get("amount"),
        currency=intent.get("currency") or "",
        failure_reason=last_error.get("message") or UNKNOWN_ERROR,
        failed_at=failed_at,
    )


def _event_object(event: dict[str, Any]) -> dict[str, Any]:
    data = event.get("data") or {}
    return data.get("object") or {}
