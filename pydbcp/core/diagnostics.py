"""
Thread-safe diagnostic event log.

Collects text entries from any thread in the order the writes complete, so
tests can assert how concurrent operations interleaved. Entries are read
back last-in-first-out with ``pop()`` or all at once with ``get_all()``.

One process-wide instance is available from ``get_event_log()``; code that
wants an isolated log builds its own ``EventLog`` and passes it in.
EventLogHandler plugs an EventLog into the standard ``logging`` tree.
"""

import logging
import threading
import traceback


class EventLog:
    """Ordered log of text entries guarded by a single re-entrant lock."""

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._lock = threading.RLock()

    def record(self, message: object, exc: BaseException | None = None) -> None:
        """Append one entry: *message*, plus the error and its traceback if given."""
        text = str(message)
        if exc is not None:
            text += f" <{type(exc).__name__}: {exc}>"
            text += "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        with self._lock:
            self._entries.append(text)

    def pop(self) -> str | None:
        """Remove and return the most recent entry, or None when empty."""
        with self._lock:
            if not self._entries:
                return None
            return self._entries.pop()

    def get_all(self) -> list[str]:
        """Snapshot of all entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._entries

    def lock(self) -> None:
        """Take the log's lock, e.g. to inspect and clear it as one step.

        The lock is re-entrant: the holder can keep calling the other methods.
        """
        self._lock.acquire()

    def unlock(self) -> None:
        """Release the lock taken by ``lock()``; a no-op if this thread does not hold it."""
        try:
            self._lock.release()
        except RuntimeError:
            pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EventLogHandler(logging.Handler):
    """logging handler that records every formatted message into an EventLog."""

    def __init__(self, event_log: EventLog | None = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.event_log = event_log if event_log is not None else get_event_log()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            exc = record.exc_info[1] if record.exc_info else None
            self.event_log.record(record.getMessage(), exc)
        except Exception:
            self.handleError(record)


_event_log: EventLog | None = None
_event_log_lock = threading.Lock()


def get_event_log() -> EventLog:
    """Return the process-wide EventLog (thread-safe double-checked locking)."""
    global _event_log
    if _event_log is None:
        with _event_log_lock:
            if _event_log is None:
                _event_log = EventLog()
    return _event_log
