"""FastAPI dependency injection providers for shared services.

Each provider is cached with @lru_cache so the process holds exactly one
instance of every service. The activity log in particular is constructed
once here and handed to every component that writes to it.

Service Dependency Graph:
    Settings
        ├── StripeService
        │       └── CustomerLookup ──┐
        ├── GmailService ──┐         │
        └── AirtableService ┴── FailureNotifier
                                     └── WebhookHandler
    ActivityLog (shared by all of the above)

Testing:
    Override providers with ``app.dependency_overrides`` or call
    reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from payment_monitor.config import Settings, get_settings
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.airtable_service import AirtableService
from payment_monitor.services.customer_lookup import CustomerLookup
from payment_monitor.services.gmail_service import GmailService
from payment_monitor.services.notifier import FailureNotifier
from payment_monitor.services.stripe_service import StripeService
from payment_monitor.services.webhook_handler import WebhookHandler


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_activity_log() -> ActivityLog:
    """Get the process-wide activity log."""
    return ActivityLog()


@lru_cache
def get_stripe_service() -> StripeService:
    return StripeService(get_settings())


@lru_cache
def get_gmail_service() -> GmailService:
    return GmailService(get_settings(), get_activity_log())


@lru_cache
def get_airtable_service() -> AirtableService:
    return AirtableService(get_settings(), get_activity_log())


@lru_cache
def get_notifier() -> FailureNotifier:
    """Get cached FailureNotifier wired to the Gmail and Airtable sinks."""
    return FailureNotifier(mailer=get_gmail_service(), table_store=get_airtable_service())


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler with all of its collaborators."""
    stripe_service = get_stripe_service()
    return WebhookHandler(
        stripe_service=stripe_service,
        customer_lookup=CustomerLookup(stripe_service, get_activity_log()),
        notifier=get_notifier(),
        activity_log=get_activity_log(),
    )


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_settings.cache_clear()
    get_activity_log.cache_clear()
    get_stripe_service.cache_clear()
    get_gmail_service.cache_clear()
    get_airtable_service.cache_clear()
    get_notifier.cache_clear()
    get_webhook_handler.cache_clear()
