"""Pytest configuration and fixtures for the payment monitor tests.

This module provides reusable fixtures for testing:
- Settings built from a controlled environment
- Fake notification sinks and a stubbed Stripe client
- Stripe services with real signature checks (builders live in factories.py)
- A FastAPI TestClient wired with dependency overrides
"""

import os
from typing import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# === Environment Setup ===

# Set before any application import so the module-level app sees them
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret_for_testing")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_abc123xyz")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from factories import (  # noqa: E402
    FIXED_NOW,
    TEST_CUSTOMER_ID,
    TEST_PAYMENT_ID,
    TEST_SECRET_KEY,
    TEST_WEBHOOK_SECRET,
    FakeMailer,
    FakeTableStore,
)
from payment_monitor.config import Settings  # noqa: E402
from payment_monitor.models.failure import FailureRecord  # noqa: E402
from payment_monitor.services.activity_log import ActivityLog  # noqa: E402
from payment_monitor.services.customer_lookup import CustomerLookup  # noqa: E402
from payment_monitor.services.notifier import FailureNotifier  # noqa: E402
from payment_monitor.services.stripe_service import StripeService  # noqa: E402
from payment_monitor.services.webhook_handler import WebhookHandler  # noqa: E402

# === Fixtures ===


@pytest.fixture(autouse=True)
def reset_cached_services() -> Generator[None, None, None]:
    """Clear cached providers so each test starts from a clean graph."""
    from payment_monitor.api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key=TEST_SECRET_KEY,
        stripe_webhook_secret=TEST_WEBHOOK_SECRET,
        airtable_api_key="patTEST",
        alert_email="alerts@example.com",
    )


@pytest.fixture
def activity_log() -> ActivityLog:
    return ActivityLog()


@pytest.fixture
def sample_record() -> FailureRecord:
    return FailureRecord(
        payment_id=TEST_PAYMENT_ID,
        customer_email="jane@example.com",
        customer_name="Jane Doe",
        amount=2999,
        currency="usd",
        failure_reason="Your card was declined.",
        failed_at=FIXED_NOW,
    )


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def table_store() -> FakeTableStore:
    return FakeTableStore()


@pytest.fixture
def mock_stripe_client() -> MagicMock:
    """Stripe client whose customer lookup returns Jane Doe."""
    client = MagicMock()
    client.customers.retrieve.return_value = {
        "id": TEST_CUSTOMER_ID,
        "object": "customer",
        "email": "jane@example.com",
        "name": "Jane Doe",
    }
    client.customers.list.return_value = MagicMock(data=[])
    return client


@pytest.fixture
def stripe_service(settings: Settings, mock_stripe_client: MagicMock) -> StripeService:
    """Real signature verification, stubbed API client."""
    service = StripeService(settings)
    service._client = mock_stripe_client
    return service


@pytest.fixture
def webhook_handler(
    stripe_service: StripeService,
    mailer: FakeMailer,
    table_store: FakeTableStore,
    activity_log: ActivityLog,
) -> WebhookHandler:
    return WebhookHandler(
        stripe_service=stripe_service,
        customer_lookup=CustomerLookup(stripe_service, activity_log),
        notifier=FailureNotifier(mailer, table_store),
        activity_log=activity_log,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def client(
    settings: Settings,
    activity_log: ActivityLog,
    stripe_service: StripeService,
    webhook_handler: WebhookHandler,
    mailer: FakeMailer,
    table_store: FakeTableStore,
) -> Generator[TestClient, None, None]:
    """TestClient with every external dependency replaced."""
    from payment_monitor.api import dependencies
    from payment_monitor.api.main import app

    app.dependency_overrides[dependencies.get_app_settings] = lambda: settings
    app.dependency_overrides[dependencies.get_activity_log] = lambda: activity_log
    app.dependency_overrides[dependencies.get_stripe_service] = lambda: stripe_service
    app.dependency_overrides[dependencies.get_webhook_handler] = lambda: webhook_handler
    app.dependency_overrides[dependencies.get_notifier] = lambda: FailureNotifier(mailer, table_store)

    yield TestClient(app)

    app.dependency_overrides.clear()
