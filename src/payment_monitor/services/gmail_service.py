"""Gmail alert delivery using a Google service account."""

import threading
from typing import Any

import httplib2
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build

from payment_monitor.config import Settings
from payment_monitor.models.failure import DeliveryResult, FailureRecord
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.formatter import build_alert_message, encode_for_gmail
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"


class GmailServiceError(Exception):
    """Raised when Gmail credentials cannot be built or refreshed."""

    pass


class GmailService:
    """Sends failure alerts through the Gmail API.

    Credentials and the API client are built lazily on first use, so a
    missing configuration surfaces as a failed send rather than at startup.
    Sends run in worker threads; the client is shared but every request
    gets its own httplib2 transport, which is not thread-safe.
    """

    def __init__(self, settings: Settings, activity_log: ActivityLog) -> None:
        self._settings = settings
        self._log = activity_log
        self._credentials: service_account.Credentials | None = None
        self._service: Any = None
        self._lock = threading.RLock()

    def _service_account_info(self) -> dict[str, str]:
        settings = self._settings
        missing = [
            name
            for name, value in (
                ("GMAIL_PRIVATE_KEY", settings.gmail_private_key),
                ("GMAIL_CLIENT_EMAIL", settings.gmail_client_email),
            )
            if not value
        ]
        if missing:
            raise GmailServiceError(f"Missing Gmail credentials: {', '.join(missing)}")

        return {
            "type": "service_account",
            "private_key": settings.gmail_private_key or "",
            "client_email": settings.gmail_client_email or "",
            "client_id": settings.gmail_client_id or "",
            "project_id": settings.gmail_project_id or "",
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    def _get_credentials(self) -> service_account.Credentials:
        with self._lock:
            if self._credentials is None:
                try:
                    self._credentials = service_account.Credentials.from_service_account_info(
                        self._service_account_info(),
                        scopes=[GMAIL_SEND_SCOPE],
                    )
                except ValueError as e:
                    raise GmailServiceError(f"Invalid Gmail credentials: {e}") from e
            return self._credentials

    def _get_service(self) -> Any:
        with self._lock:
            if self._service is None:
                self._service = build(
                    "gmail",
                    "v1",
                    credentials=self._get_credentials(),
                    cache_discovery=False,
                )
            return self._service

    def _new_transport(self) -> AuthorizedHttp:
        return AuthorizedHttp(self._get_credentials(), http=httplib2.Http())

    def send_alert(self, record: FailureRecord) -> DeliveryResult:
        """Send the alert email for a failed payment.

        Never raises: any error is logged and returned as a failed result.
        """
        try:
            message = build_alert_message(record, self._settings.alert_email)
            self._get_service().users().messages().send(
                userId="me",
                body={"raw": encode_for_gmail(message)},
            ).execute(http=self._new_transport())
        except Exception as e:
            self._log.error(f"Failed to send email alert: {e}")
            return DeliveryResult.failed(str(e))

        self._log.info(f"Email alert sent for payment failure: {record.payment_id}")
        return DeliveryResult.ok()

    def check_connection(self) -> None:
        """Obtain an access token; used by the health endpoint.

        Raises:
            GmailServiceError: If credentials are missing or the token
                request fails.
        """
        credentials = self._get_credentials()
        try:
            credentials.refresh(Request())
        except Exception as e:
            raise GmailServiceError(f"Gmail authentication failed: {e}") from e
        logger.debug("Gmail credentials refreshed")
