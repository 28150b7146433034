"""Activity log entry model."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LogSeverity(str, Enum):
    """Severity of an activity log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogEntry(BaseModel):
    """One operational event shown by the status and logs endpoints.

    Entries are never mutated after creation.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="When the entry was recorded (UTC)")
    message: str
    severity: LogSeverity = Field(
        default=LogSeverity.INFO,
        serialization_alias="type",
        description="Entry severity (serialized as `type`)",
    )
