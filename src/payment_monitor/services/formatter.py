"""Rendering of failed payments for the email and Airtable sinks.

Currency is stored lowercase on ``FailureRecord`` and upper-cased here,
at presentation time only.
"""

import base64
from email.message import EmailMessage
from typing import Any

from payment_monitor.models.failure import FailureRecord

STRIPE_DASHBOARD_URL = "https://dashboard.stripe.com/payments/{payment_id}"
DEFAULT_ALERT_EMAIL = "your-email@example.com"
RECORD_STATUS_FAILED = "Failed"

# Expected columns of the "Failed Payments" table, in display order
FAILED_PAYMENTS_SCHEMA: list[tuple[str, str]] = [
    ("Payment ID", "Single line text"),
    ("Customer Email", "Email"),
    ("Customer Name", "Single line text"),
    ("Amount", "Currency"),
    ("Currency", "Single line text"),
    ("Failure Reason", "Single line text"),
    ("Failed At", "Date"),
    ("Status", "Single select: Failed, Retrying, Resolved"),
]

ALERT_TEMPLATE = """<html>
<body>
  <h2>🚨 Payment Failure Alert</h2>
  <p>A payment has failed and requires attention:</p>

  <table border="1" cellpadding="10" cellspacing="0">
    <tr><td><strong>Payment ID:</strong></td><td>{payment_id}</td></tr>
    <tr><td><strong>Customer:</strong></td><td>{customer_name} ({customer_email})</td></tr>
    <tr><td><strong>Amount:</strong></td><td>{amount} {currency}</td></tr>
    <tr><td><strong>Failure Reason:</strong></td><td>{failure_reason}</td></tr>
    <tr><td><strong>Failed At:</strong></td><td>{failed_at}</td></tr>
  </table>

  <p><strong>Action Required:</strong> Please review this failed payment and take appropriate action.</p>

  <p>View in Stripe Dashboard: <a href="{dashboard_url}">Click here</a></p>
</body>
</html>
"""


def format_amount(amount_minor: int) -> float:
    """Convert minor units to major units.

    Always divides by 100, which is wrong for zero-decimal currencies
    such as JPY. Existing Airtable rows depend on this behavior.
    """
    return amount_minor / 100


def format_timestamp(record: FailureRecord) -> str:
    return record.failed_at.isoformat()


def dashboard_url(payment_id: str) -> str:
    return STRIPE_DASHBOARD_URL.format(payment_id=payment_id)


def alert_subject(record: FailureRecord) -> str:
    return f"🚨 Payment Failed Alert - {record.customer_email}"


def render_alert_html(record: FailureRecord) -> str:
    """Render the HTML alert body.

    The amount is shown as received from Stripe (minor units), followed by
    the upper-cased currency code.
    """
    return ALERT_TEMPLATE.format(
        payment_id=record.payment_id,
        customer_name=record.customer_name,
        customer_email=record.customer_email,
        amount=record.amount,
        currency=record.currency.upper(),
        failure_reason=record.failure_reason,
        failed_at=format_timestamp(record),
        dashboard_url=dashboard_url(record.payment_id),
    )


def build_alert_message(record: FailureRecord, to_address: str | None) -> EmailMessage:
    """Build the alert email.

    Args:
        record: The failed payment
        to_address: Destination; falls back to ``DEFAULT_ALERT_EMAIL`` when unset
    """
    message = EmailMessage()
    message["Subject"] = alert_subject(record)
    message["To"] = to_address or DEFAULT_ALERT_EMAIL
    message.set_content(render_alert_html(record), subtype="html", charset="utf-8")
    return message


def encode_for_gmail(message: EmailMessage) -> str:
    """Encode a message for the Gmail API ``raw`` field.

    Gmail expects URL-safe base64 of the RFC 2822 message; padding is stripped.
    """
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


def build_record_fields(record: FailureRecord) -> dict[str, Any]:
    """Map a failure onto the "Failed Payments" Airtable columns.

    ``Status`` is always "Failed"; no code path moves a row to "Retrying"
    or "Resolved".
    """
    return {
        "Payment ID": record.payment_id,
        "Customer Email": record.customer_email,
        "Customer Name": record.customer_name,
        "Amount": format_amount(record.amount),
        "Currency": record.currency.upper(),
        "Failure Reason": record.failure_reason,
        "Failed At": format_timestamp(record),
        "Status": RECORD_STATUS_FAILED,
    }


def describe_schema() -> list[str]:
    """Human-readable lines describing the expected table columns."""
    return [f"- {name} ({field_type})" for name, field_type in FAILED_PAYMENTS_SCHEMA]
