"""Runtime configuration read from the environment.

Nothing is validated eagerly: a missing credential only surfaces when the
service that needs it makes its first call.
"""

import os
from functools import lru_cache
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_AIRTABLE_BASE_ID = "appUNIsu8KgvOlmi0"
DEFAULT_AIRTABLE_TABLE = "Failed Payments"
DEFAULT_PORT = 3000

# Settings field -> SSM parameter suffix, consulted only for unset secrets
SSM_SECRET_PATHS: dict[str, str] = {
    "stripe_secret_key": "stripe/secret_key",
    "stripe_webhook_secret": "stripe/webhook_secret",
    "airtable_api_key": "airtable/api_key",
    "gmail_private_key": "gmail/private_key",
}


class Settings(BaseModel):
    """Service configuration."""

    model_config = ConfigDict(frozen=True)

    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    airtable_api_key: str | None = None
    airtable_base_id: str = DEFAULT_AIRTABLE_BASE_ID
    airtable_table_name: str = DEFAULT_AIRTABLE_TABLE

    gmail_private_key: str | None = None
    gmail_client_email: str | None = None
    gmail_client_id: str | None = None
    gmail_project_id: str | None = None

    alert_email: str | None = Field(
        default=None, description="Destination address for failure alerts"
    )

    port: int = DEFAULT_PORT
    environment: str = "dev"
    log_level: str = "INFO"
    ssm_parameter_prefix: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
        """
        env = os.environ if environ is None else environ

        private_key = env.get("GMAIL_PRIVATE_KEY")
        if private_key:
            # Keys pasted into env files usually carry escaped newlines
            private_key = private_key.replace("\\n", "\n")

        return cls(
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=env.get("STRIPE_WEBHOOK_SECRET") or None,
            airtable_api_key=env.get("AIRTABLE_API_KEY") or None,
            airtable_base_id=env.get("AIRTABLE_BASE_ID") or DEFAULT_AIRTABLE_BASE_ID,
            airtable_table_name=env.get("AIRTABLE_TABLE_NAME") or DEFAULT_AIRTABLE_TABLE,
            gmail_private_key=private_key or None,
            gmail_client_email=env.get("GMAIL_CLIENT_EMAIL") or None,
            gmail_client_id=env.get("GMAIL_CLIENT_ID") or None,
            gmail_project_id=env.get("GMAIL_PROJECT_ID") or None,
            alert_email=env.get("ALERT_EMAIL") or None,
            port=int(env.get("PORT") or DEFAULT_PORT),
            environment=env.get("ENVIRONMENT") or "dev",
            log_level=env.get("LOG_LEVEL") or "INFO",
            ssm_parameter_prefix=env.get("SSM_PARAMETER_PREFIX") or None,
        )

    def with_ssm_secrets(self) -> "Settings":
        """Fill unset secrets from SSM Parameter Store.

        Only runs when ``ssm_parameter_prefix`` is set. A parameter that
        cannot be read is logged and left unset.
        """
        if not self.ssm_parameter_prefix:
            return self

        from payment_monitor.services.ssm_service import SSMServiceError, get_ssm_service

        prefix = self.ssm_parameter_prefix.rstrip("/")
        wanted = {
            f"{prefix}/{suffix}": field_name
            for field_name, suffix in SSM_SECRET_PATHS.items()
            if not getattr(self, field_name)
        }
        if not wanted:
            return self

        try:
            values = get_ssm_service().get_parameters(wanted)
        except SSMServiceError as e:
            logger.warning("Secrets not loaded from SSM: %s", e)
            return self

        updates: dict[str, str] = {}
        for name, value in values.items():
            field_name = wanted[name]
            if field_name == "gmail_private_key":
                value = value.replace("\\n", "\n")
            updates[field_name] = value

        return self.model_copy(update=updates) if updates else self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings, loaded once."""
    return Settings.from_env().with_ssm_secrets()
