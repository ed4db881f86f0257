"""In-memory log panel contents."""

from __future__ import annotations

import logging
from collections import deque

from duocontrol.domain.models import LogEntry, Severity

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.ERROR: logging.ERROR,
}


class LogBuffer:
    """Keeps the most recent ``capacity`` entries, oldest evicted first.

    Entries are also forwarded to the Python logger so that a session can
    be reviewed from the terminal or the log file.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def add(self, message: str, severity: Severity = Severity.INFO) -> LogEntry:
        entry = LogEntry(severity=severity, message=message)
        self._entries.append(entry)
        logger.log(_LEVELS[severity], "[%s] %s", severity.value, message)
        return entry

    def entries(self) -> list[LogEntry]:
        """Copy of the entries in insertion order."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
