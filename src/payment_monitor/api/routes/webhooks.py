"""Stripe webhook endpoint.

No authentication beyond the Stripe signature, which is verified against the
raw request body. Every verified event is acknowledged with 200, whatever
happened downstream, so Stripe does not redeliver because of a failed sink.
"""

from fastapi import APIRouter, Depends, Request

from payment_monitor.api.dependencies import get_webhook_handler
from payment_monitor.api.models import WebhookResponse
from payment_monitor.models.errors import ErrorResponse
from payment_monitor.services.webhook_handler import WebhookHandler

router = APIRouter(tags=["webhooks"])

STRIPE_SIGNATURE_HEADER = "Stripe-Signature"


@router.post(
    "/webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- payment_intent.payment_failed: Gmail alert and Airtable record
- charge.failed, invoice.payment_failed: activity log only

**No authentication required** - signature is verified using the Stripe webhook secret.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event verified and acknowledged", "model": WebhookResponse},
        400: {"description": "Invalid signature or missing header", "model": ErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    payload = await request.body()
    signature = request.headers.get(STRIPE_SIGNATURE_HEADER)

    outcome = await handler.handle(payload, signature)

    return WebhookResponse(received=True, event_type=outcome.event_type)
