"""Unit tests for WebhookHandler dispatch and failure normalization."""

from unittest.mock import MagicMock

import pytest
import stripe
from pydantic import ValidationError

from factories import (
    FIXED_NOW,
    TEST_PAYMENT_ID,
    FakeMailer,
    FakeTableStore,
    encode_event,
    make_event,
    make_payment_intent,
    sign_payload,
)
from payment_monitor.models.errors import ErrorCode, MonitorError
from payment_monitor.models.failure import CustomerContact
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.webhook_handler import (
    CHARGE_FAILED,
    INVOICE_PAYMENT_FAILED,
    PAYMENT_INTENT_FAILED,
    WebhookHandler,
    build_failure_record,
)


def _signed(event: dict) -> tuple[bytes, str]:
    payload = encode_event(event)
    return payload, sign_payload(payload)


class TestPaymentIntentFailed:
    async def test_enriched_record_reaches_both_sinks(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        table_store: FakeTableStore,
    ):
        payload, signature = _signed(make_event(PAYMENT_INTENT_FAILED, make_payment_intent()))

        outcome = await webhook_handler.handle(payload, signature)

        assert outcome.result == "processed"
        assert outcome.event_id == "evt_1ABC123"
        assert outcome.notification is not None
        assert outcome.notification.airtable_record_id == "rec001"
        record = mailer.sent[0]
        assert table_store.rows == [record]
        assert record.payment_id == TEST_PAYMENT_ID
        assert record.customer_email == "jane@example.com"
        assert record.customer_name == "Jane Doe"
        assert record.amount == 2999
        assert record.currency == "usd"
        assert record.failure_reason == "Your card was declined."
        assert record.failed_at == FIXED_NOW

    async def test_activity_log_sequence(
        self, webhook_handler: WebhookHandler, activity_log: ActivityLog
    ):
        payload, signature = _signed(make_event(PAYMENT_INTENT_FAILED, make_payment_intent()))

        await webhook_handler.handle(payload, signature)

        messages = [entry.message for entry in reversed(activity_log.recent())]
        assert messages == [
            "Received webhook event: payment_intent.payment_failed",
            "Processing failed payment: pi_3ABC123DEF456 for jane@example.com",
            "Successfully processed failed payment: pi_3ABC123DEF456",
        ]

    async def test_no_customer_uses_sentinels(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        mock_stripe_client: MagicMock,
    ):
        intent = make_payment_intent(customer=None, failure_message=None)
        payload, signature = _signed(make_event(PAYMENT_INTENT_FAILED, intent))

        await webhook_handler.handle(payload, signature)

        record = mailer.sent[0]
        assert record.customer_email == "Unknown"
        assert record.customer_name == "Unknown Customer"
        assert record.failure_reason == "Unknown error"
        mock_stripe_client.customers.retrieve.assert_not_called()

    async def test_lookup_failure_still_notifies(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        table_store: FakeTableStore,
        mock_stripe_client: MagicMock,
    ):
        mock_stripe_client.customers.retrieve.side_effect = stripe.APIConnectionError("timeout")
        payload, signature = _signed(make_event(PAYMENT_INTENT_FAILED, make_payment_intent()))

        outcome = await webhook_handler.handle(payload, signature)

        assert outcome.result == "processed"
        assert mailer.sent[0].customer_email == "Unknown"
        assert len(table_store.rows) == 1

    async def test_malformed_intent_is_logged_not_raised(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        activity_log: ActivityLog,
    ):
        intent = make_payment_intent()
        del intent["amount"]
        payload, signature = _signed(make_event(PAYMENT_INTENT_FAILED, intent))

        outcome = await webhook_handler.handle(payload, signature)

        assert outcome.result == "error"
        assert outcome.notification is None
        assert mailer.sent == []
        entry = activity_log.recent()[0]
        assert entry.severity.value == "error"
        assert entry.message.startswith("Error processing failed payment:")


class TestOtherEvents:
    @pytest.mark.parametrize(
        ("event_type", "message"),
        [
            (CHARGE_FAILED, "Charge failed: ch_3XYZ"),
            (INVOICE_PAYMENT_FAILED, "Invoice payment failed: ch_3XYZ"),
        ],
    )
    async def test_logged_without_notification(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        table_store: FakeTableStore,
        activity_log: ActivityLog,
        event_type: str,
        message: str,
    ):
        payload, signature = _signed(make_event(event_type, {"id": "ch_3XYZ"}))

        outcome = await webhook_handler.handle(payload, signature)

        assert outcome.result == "logged"
        assert activity_log.recent()[0].message == message
        assert mailer.sent == []
        assert table_store.rows == []

    async def test_unknown_type_is_unhandled(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        activity_log: ActivityLog,
    ):
        payload, signature = _signed(make_event("customer.created", {"id": "cus_1"}))

        outcome = await webhook_handler.handle(payload, signature)

        assert outcome.result == "unhandled"
        entry = activity_log.recent()[0]
        assert entry.severity.value == "warning"
        assert entry.message == "Unhandled event type: customer.created"
        assert mailer.sent == []


class TestSignatureRejection:
    async def test_bad_signature_raises_without_side_effects(
        self,
        webhook_handler: WebhookHandler,
        mailer: FakeMailer,
        table_store: FakeTableStore,
        activity_log: ActivityLog,
    ):
        payload = encode_event(make_event(PAYMENT_INTENT_FAILED, make_payment_intent()))

        with pytest.raises(MonitorError) as exc_info:
            await webhook_handler.handle(payload, sign_payload(payload, secret="whsec_wrong"))

        assert exc_info.value.code == ErrorCode.INVALID_WEBHOOK_SIGNATURE
        assert exc_info.value.message.startswith("Webhook Error: ")
        assert mailer.sent == []
        assert table_store.rows == []
        assert activity_log.recent()[0].message.startswith(
            "Webhook signature verification failed:"
        )

    async def test_missing_signature_header(self, webhook_handler: WebhookHandler):
        with pytest.raises(MonitorError):
            await webhook_handler.handle(b"{}", None)


class TestBuildFailureRecord:
    def test_maps_intent_fields(self):
        contact = CustomerContact(email="a@example.com", name="A")

        record = build_failure_record(make_payment_intent(amount=500, currency="eur"), contact, FIXED_NOW)

        assert record.amount == 500
        assert record.currency == "eur"
        assert record.customer_name == "A"
        assert record.failed_at == FIXED_NOW

    def test_missing_id_rejected(self):
        intent = make_payment_intent()
        intent["id"] = None

        with pytest.raises(ValidationError):
            build_failure_record(intent, CustomerContact.unknown(), FIXED_NOW)

    def test_missing_currency_rejected(self):
        intent = make_payment_intent()
        del intent["currency"]

        with pytest.raises(ValidationError):
            build_failure_record(intent, CustomerContact.unknown(), FIXED_NOW)
