"""Services for the payment failure monitor."""

from .activity_log import ActivityLog
from .airtable_service import AirtableService, AirtableServiceError
from .customer_lookup import CustomerLookup
from .gmail_service import GmailService, GmailServiceError
from .notifier import FailureNotifier
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import StripeService, StripeServiceError
from .webhook_handler import WebhookHandler, WebhookOutcome

__all__ = [
    "ActivityLog",
    "AirtableService",
    "AirtableServiceError",
    "CustomerLookup",
    "FailureNotifier",
    "GmailService",
    "GmailServiceError",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
    "WebhookHandler",
    "WebhookOutcome",
]
