"""Customer enrichment for failed payments."""

from typing import Any

from starlette.concurrency import run_in_threadpool

from payment_monitor.models.failure import UNKNOWN_CUSTOMER, UNKNOWN_EMAIL, CustomerContact
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.stripe_service import StripeService, StripeServiceError


class CustomerLookup:
    """Resolves a PaymentIntent's customer reference to an email and name.

    A missing reference short-circuits to the unknown contact without calling
    Stripe. A failed lookup is logged and treated the same way, so the alert
    is still sent with placeholder values rather than dropped.
    """

    def __init__(self, stripe_service: StripeService, activity_log: ActivityLog) -> None:
        self._stripe = stripe_service
        self._log = activity_log

    async def resolve(self, customer_ref: str | dict[str, Any] | None) -> CustomerContact:
        """Resolve a customer reference.

        Args:
            customer_ref: Customer ID (cus_xxx), an expanded customer object,
                or None.
        """
        customer_id = _customer_id(customer_ref)
        if not customer_id:
            return CustomerContact.unknown()

        try:
            customer = await run_in_threadpool(self._stripe.retrieve_customer, customer_id)
        except StripeServiceError as e:
            self._log.warning(f"Customer lookup failed for {customer_id}: {e}")
            return CustomerContact.unknown()

        return contact_from_customer(customer)


def contact_from_customer(customer: dict[str, Any]) -> CustomerContact:
    """Build a contact from Stripe customer fields.

    Name falls back to the email, then to the unknown placeholder.
    """
    email = customer.get("email") or UNKNOWN_EMAIL
    name = customer.get("name") or customer.get("email") or UNKNOWN_CUSTOMER
    return CustomerContact(email=email, name=name)


def _customer_id(customer_ref: str | dict[str, Any] | None) -> str | None:
    if isinstance(customer_ref, dict):
        return customer_ref.get("id") or None
    return customer_ref or None
