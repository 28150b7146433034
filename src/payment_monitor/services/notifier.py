"""Fan-out of a failed payment to the email and Airtable sinks."""

from typing import Callable, Protocol

from starlette.concurrency import run_in_threadpool

from payment_monitor.models.failure import DeliveryResult, FailureRecord, NotificationResult
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)


class Mailer(Protocol):
    def send_alert(self, record: FailureRecord) -> DeliveryResult: ...


class TableStore(Protocol):
    def create_failure_record(self, record: FailureRecord) -> DeliveryResult: ...


class FailureNotifier:
    """Delivers a failure to both sinks, email first.

    Each sink is called exactly once and runs in a worker thread so the
    event loop keeps serving other requests. A failed or raising email sink
    never prevents the Airtable write.
    """

    def __init__(self, mailer: Mailer, table_store: TableStore) -> None:
        self._mailer = mailer
        self._table_store = table_store

    async def notify(self, record: FailureRecord) -> NotificationResult:
        email = await _deliver("email", self._mailer.send_alert, record)
        row = await _deliver("airtable", self._table_store.create_failure_record, record)
        return NotificationResult(email=email, record=row)


async def _deliver(
    sink: str,
    send: Callable[[FailureRecord], DeliveryResult],
    record: FailureRecord,
) -> DeliveryResult:
    try:
        return await run_in_threadpool(send, record)
    except Exception as e:
        # Sinks report failures as values; this only catches contract breaches
        logger.exception("Sink %s raised for payment %s", sink, record.payment_id)
        return DeliveryResult.failed(str(e))
