"""Status, health and activity log endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from payment_monitor.api.dependencies import (
    get_activity_log,
    get_airtable_service,
    get_gmail_service,
    get_stripe_service,
)
from payment_monitor.api.models import (
    HealthErrorResponse,
    HealthResponse,
    LogsResponse,
    StatusResponse,
)
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.airtable_service import AirtableService
from payment_monitor.services.gmail_service import GmailService
from payment_monitor.services.stripe_service import StripeService
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["status"])

SERVICE_NAME = "Stripe Payment Failure Monitor"
RECENT_LOGS_LIMIT = 20

ENDPOINTS: dict[str, str] = {
    "/": "Status and available endpoints",
    "/health": "Health check",
    "/logs": "View recent logs",
    "/test": "Manual test run (POST)",
    "/webhook": "Stripe webhook endpoint (POST)",
}

FEATURES: list[str] = [
    "Monitors Stripe for failed payments",
    "Sends Gmail alerts for failures",
    "Updates Airtable Failed Payments table",
    "Webhook event processing",
]


@router.get("/", response_model=StatusResponse, summary="Service status")
async def status(activity_log: ActivityLog = Depends(get_activity_log)) -> StatusResponse:
    return StatusResponse(
        service=SERVICE_NAME,
        endpoints=ENDPOINTS,
        features=FEATURES,
        last_activity=activity_log.last_activity or "No activity yet",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Dependency health check",
    description="""
Checks Stripe (list one customer), Airtable (read one row) and Gmail
(refresh service account credentials), in that order. The first failure
is reported with status 500.
""",
    responses={500: {"description": "A dependency failed", "model": HealthErrorResponse}},
)
async def health(
    stripe_service: StripeService = Depends(get_stripe_service),
    airtable: AirtableService = Depends(get_airtable_service),
    gmail: GmailService = Depends(get_gmail_service),
) -> HealthResponse | JSONResponse:
    try:
        await run_in_threadpool(stripe_service.list_customers, 1)
        await run_in_threadpool(airtable.check_connection)
        await run_in_threadpool(gmail.check_connection)
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        body = HealthErrorResponse(error=str(e), timestamp=datetime.now(timezone.utc))
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
        )

    return HealthResponse(timestamp=datetime.now(timezone.utc))


@router.get("/logs", response_model=LogsResponse, summary="Recent activity")
async def logs(activity_log: ActivityLog = Depends(get_activity_log)) -> LogsResponse:
    return LogsResponse(
        logs=activity_log.recent(RECENT_LOGS_LIMIT),
        total=len(activity_log),
    )
