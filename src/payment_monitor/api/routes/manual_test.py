"""Manual end-to-end check of the notification sinks.

Sends a synthetic failure through Gmail and Airtable only: no signature
verification, no Stripe lookup.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from payment_monitor.api.dependencies import get_activity_log, get_app_settings, get_notifier
from payment_monitor.api.models import (
    ManualTestErrorResponse,
    ManualTestResponse,
    ManualTestResults,
)
from payment_monitor.config import Settings
from payment_monitor.models.failure import FailureRecord
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.notifier import FailureNotifier

router = APIRouter(tags=["testing"])

TEST_AMOUNT = 2999
TEST_CURRENCY = "usd"
TEST_CUSTOMER_NAME = "Test Customer"
TEST_CUSTOMER_EMAIL = "test@example.com"
TEST_FAILURE_REASON = "Test failure - manual test run"


def build_test_record(settings: Settings, now: datetime | None = None) -> FailureRecord:
    """Build the fixed synthetic failure used by ``POST /test``."""
    now = now or datetime.now(timezone.utc)
    return FailureRecord(
        payment_id=f"test_{int(now.timestamp() * 1000)}",
        customer_email=settings.alert_email or TEST_CUSTOMER_EMAIL,
        customer_name=TEST_CUSTOMER_NAME,
        amount=TEST_AMOUNT,
        currency=TEST_CURRENCY,
        failure_reason=TEST_FAILURE_REASON,
        failed_at=now,
    )


@router.post(
    "/test",
    response_model=ManualTestResponse,
    summary="Manual test run",
    responses={500: {"description": "Test could not run", "model": ManualTestErrorResponse}},
)
async def run_manual_test(
    settings: Settings = Depends(get_app_settings),
    notifier: FailureNotifier = Depends(get_notifier),
    activity_log: ActivityLog = Depends(get_activity_log),
) -> ManualTestResponse | JSONResponse:
    try:
        activity_log.info("Manual test initiated")
        record = build_test_record(settings)
        result = await notifier.notify(record)
    except Exception as e:
        activity_log.error(f"Test failed: {e}")
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=ManualTestErrorResponse(error=str(e)).model_dump(),
        )

    return ManualTestResponse(
        results=ManualTestResults(
            email_sent=result.email_sent,
            airtable_record=result.airtable_record_id,
        )
    )
