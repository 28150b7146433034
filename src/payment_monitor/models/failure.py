"""Failed payment records and sink delivery outcomes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_EMAIL = "Unknown"
UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_ERROR = "Unknown error"


class CustomerContact(BaseModel):
    """Customer email and display name resolved from Stripe."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(default=UNKNOWN_EMAIL, description="Customer email")
    name: str = Field(default=UNKNOWN_CUSTOMER, description="Customer display name")

    @classmethod
    def unknown(cls) -> "CustomerContact":
        """Contact used when there is no customer to look up."""
        return cls(email=UNKNOWN_EMAIL, name=UNKNOWN_CUSTOMER)


class FailureRecord(BaseModel):
    """A normalized failed payment, fully populated before any sink runs.

    Amounts stay in the smallest currency unit. Currency is kept as Stripe
    sends it (lowercase) and is upper-cased only when rendered.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    payment_id: str = Field(
        ...,
        min_length=1,
        description="Stripe PaymentIntent ID (pi_xxx)",
        examples=["pi_3ABC123DEF456"],
    )
    customer_email: str = Field(default=UNKNOWN_EMAIL)
    customer_name: str = Field(default=UNKNOWN_CUSTOMER)
    amount: int = Field(..., ge=0, description="Amount in minor units (cents)")
    currency: str = Field(..., min_length=1, examples=["usd"])
    failure_reason: str = Field(default=UNKNOWN_ERROR)
    failed_at: datetime = Field(
        ...,
        description="When this service processed the failure (not the Stripe event time)",
    )


class DeliveryResult(BaseModel):
    """Outcome of a single sink call.

    Sinks never raise; callers inspect ``success`` instead.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    record_id: str | None = Field(
        default=None, description="Identifier created by the sink (Airtable record ID)"
    )
    error: str | None = None

    @classmethod
    def ok(cls, record_id: str | None = None) -> "DeliveryResult":
        return cls(success=True, record_id=record_id)

    @classmethod
    def failed(cls, error: str) -> "DeliveryResult":
        return cls(success=False, error=error)


class NotificationResult(BaseModel):
    """Combined outcome of the email and Airtable sinks for one failure."""

    model_config = ConfigDict(frozen=True)

    email: DeliveryResult
    record: DeliveryResult

    @property
    def email_sent(self) -> bool:
        return self.email.success

    @property
    def airtable_record_id(self) -> str | None:
        return self.record.record_id if self.record.success else None
