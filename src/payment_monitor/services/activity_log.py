"""Bounded in-memory activity log.

Keeps the most recent operational events for the status and logs
endpoints. Nothing is persisted; the log starts empty on every restart.
"""

import logging
from collections import deque
from datetime import datetime, timezone

from payment_monitor.models.activity import LogEntry, LogSeverity
from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CAPACITY = 50

_LEVELS: dict[LogSeverity, int] = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.WARNING: logging.WARNING,
    LogSeverity.ERROR: logging.ERROR,
}


class ActivityLog:
    """Newest-first ring buffer of ``LogEntry`` objects.

    Inserting beyond ``capacity`` evicts the oldest entry. Each append is a
    single ``deque.appendleft`` so interleaved requests never observe a
    half-written log.

    Every entry is also echoed to the process logger at the matching level.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, message: str, severity: LogSeverity | str = LogSeverity.INFO) -> LogEntry:
        """Record an event.

        Args:
            message: Human-readable description
            severity: info, warning or error

        Returns:
            The stored entry.
        """
        severity = LogSeverity(severity)
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            message=message,
            severity=severity,
        )
        self._entries.appendleft(entry)

        logger.log(
            _LEVELS[severity],
            "[%s] %s: %s",
            entry.timestamp.isoformat(),
            severity.value.upper(),
            message,
        )
        return entry

    def info(self, message: str) -> LogEntry:
        return self.add(message, LogSeverity.INFO)

    def warning(self, message: str) -> LogEntry:
        return self.add(message, LogSeverity.WARNING)

    def error(self, message: str) -> LogEntry:
        return self.add(message, LogSeverity.ERROR)

    def recent(self, limit: int | None = None) -> list[LogEntry]:
        """Return up to ``limit`` entries, newest first."""
        entries = list(self._entries)
        return entries if limit is None else entries[:limit]

    @property
    def last_activity(self) -> datetime | None:
        """Timestamp of the newest entry, or None when empty."""
        return self._entries[0].timestamp if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
