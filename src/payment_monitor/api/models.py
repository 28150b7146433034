"""API request/response models.

Field names follow the JSON keys the service has always exposed
(``lastActivity``, ``emailSent``, ``airtableRecord``), hence the aliases.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from payment_monitor.models.activity import LogEntry


class WebhookResponse(BaseModel):
    """Acknowledgement returned to Stripe for every verified event."""

    received: bool = True
    event_type: str | None = Field(default=None, description="Stripe event type")


class StatusResponse(BaseModel):
    """Service summary returned by ``GET /``."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "Active"
    service: str
    endpoints: dict[str, str]
    features: list[str]
    last_activity: datetime | str = Field(
        ...,
        serialization_alias="lastActivity",
        description="Timestamp of the newest log entry, or 'No activity yet'",
    )


class HealthServices(BaseModel):
    stripe: str = "connected"
    airtable: str = "connected"
    gmail: str = "connected"


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    services: HealthServices = Field(default_factory=HealthServices)


class HealthErrorResponse(BaseModel):
    status: str = "unhealthy"
    error: str
    timestamp: datetime


class LogsResponse(BaseModel):
    logs: list[LogEntry]
    total: int = Field(..., ge=0, description="Number of entries retained in memory")


class ManualTestResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email_sent: bool = Field(..., serialization_alias="emailSent")
    airtable_record: str | None = Field(..., serialization_alias="airtableRecord")


class ManualTestResponse(BaseModel):
    """Outcome of ``POST /test``."""

    success: bool = True
    message: str = "Test completed"
    results: ManualTestResults


class ManualTestErrorResponse(BaseModel):
    success: bool = False
    error: str
