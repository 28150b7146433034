"""Airtable "Failed Payments" table writer."""

from typing import Any

from pyairtable import Api

from payment_monitor.config import Settings
from payment_monitor.models.failure import DeliveryResult, FailureRecord
from payment_monitor.services.activity_log import ActivityLog
from payment_monitor.services.formatter import build_record_fields, describe_schema
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)


class AirtableServiceError(Exception):
    """Raised when the Airtable table cannot be reached."""

    pass


class AirtableService:
    """Creates one row per failed payment.

    Usage:
        airtable = AirtableService(get_settings(), activity_log)
        result = airtable.create_failure_record(record)
    """

    def __init__(self, settings: Settings, activity_log: ActivityLog) -> None:
        self._settings = settings
        self._log = activity_log
        self._table: Any = None

    @property
    def table_name(self) -> str:
        return self._settings.airtable_table_name

    def _get_table(self) -> Any:
        if self._table is None:
            api_key = self._settings.airtable_api_key
            if not api_key:
                raise AirtableServiceError("AIRTABLE_API_KEY is not configured")
            self._table = Api(api_key).table(
                self._settings.airtable_base_id,
                self._settings.airtable_table_name,
            )
        return self._table

    def create_failure_record(self, record: FailureRecord) -> DeliveryResult:
        """Create a row for a failed payment.

        Never raises: any error is logged and returned as a failed result.
        """
        try:
            created = self._get_table().create(build_record_fields(record))
        except Exception as e:
            self._log.error(f"Failed to create Airtable record: {e}")
            return DeliveryResult.failed(str(e))

        record_id = created["id"]
        self._log.info(f"Created Airtable record for failed payment: {record_id}")
        return DeliveryResult.ok(record_id)

    def check_connection(self) -> None:
        """Read at most one row from the table.

        Raises:
            AirtableServiceError: If the table cannot be read.
        """
        try:
            self._get_table().all(max_records=1)
        except AirtableServiceError:
            raise
        except Exception as e:
            raise AirtableServiceError(f"Airtable table '{self.table_name}' unavailable: {e}") from e

    def ensure_table(self) -> bool:
        """Check that the table exists, describing its schema if not.

        Advisory only: the table is never created here and a failure never
        raises.

        Returns:
            True if the table could be read.
        """
        try:
            self.check_connection()
        except AirtableServiceError as e:
            logger.debug("Table check failed: %s", e)
            self._log.warning(
                f"{self.table_name} table needs to be created manually in Airtable"
            )
            self._log.info(f'Please create a table called "{self.table_name}" with these fields:')
            for line in describe_schema():
                self._log.info(line)
            return False

        self._log.info(f"{self.table_name} table already exists")
        return True
