"""Stripe integration for webhook verification and customer lookup.

Uses the v8+ StripeClient pattern. Signature verification (HMAC over the raw
payload with timestamp tolerance) is entirely delegated to the Stripe SDK.
"""

from typing import Any

import stripe
from stripe import StripeClient

from payment_monitor.config import Settings
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe operations.

    Handles:
    - Webhook signature validation
    - Customer retrieval for enrichment
    - Connectivity check for the health endpoint

    Usage:
        stripe_svc = StripeService(get_settings())
        event = stripe_svc.verify_webhook_signature(payload, signature)
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: StripeClient | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If no secret key is configured.
        """
        if self._client is None:
            secret_key = self._settings.stripe_secret_key
            if not secret_key:
                raise StripeServiceError("STRIPE_SECRET_KEY is not configured")
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._settings.environment)
        return self._client

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            StripeServiceError: If the secret or header is missing, the
                signature does not match, or the payload is not valid JSON.
        """
        webhook_secret = self._settings.stripe_webhook_secret
        if not webhook_secret:
            raise StripeServiceError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature:
            raise StripeServiceError("Missing Stripe-Signature header")

        try:
            event = _to_dict(stripe.Webhook.construct_event(payload, signature, webhook_secret))
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError(str(e)) from e
        except ValueError as e:
            logger.warning("Invalid webhook payload: %s", str(e))
            raise StripeServiceError(f"Invalid payload: {e}") from e

        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        """Retrieve a customer by ID.

        Returns:
            Customer fields as a dict. Deleted customers come back with
            ``deleted: True`` and no email or name.

        Raises:
            StripeServiceError: If the lookup fails.
        """
        client = self._get_client()
        try:
            customer = client.customers.retrieve(customer_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe customer lookup failed for %s: %s (code: %s)",
                customer_id,
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to retrieve customer {customer_id}: {e}",
                stripe_error_code=error_code,
            ) from e
        return _to_dict(customer)

    def list_customers(self, limit: int = 1) -> list[dict[str, Any]]:
        """List customers; used as a connectivity check.

        Raises:
            StripeServiceError: If the request fails.
        """
        client = self._get_client()
        try:
            page = client.customers.list(params={"limit": limit})
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            raise StripeServiceError(
                f"Failed to list customers: {e}",
                stripe_error_code=error_code,
            ) from e
        return [_to_dict(customer) for customer in page.data]


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert a StripeObject (or plain mapping) to a plain dict."""
    if type(obj) is dict:
        return obj
    for attr in ("to_dict_recursive", "to_dict"):
        convert = getattr(obj, attr, None)
        if callable(convert):
            return convert()
    return dict(obj)
