"""
Minimal connection pool over ConnectionFactory instances.

Keeps idle connections per pool name, opens new ones through the pool's
factory, evicts connections older than max age on checkout and reports
every close failure of a dispose as one SQLErrorList.
"""

import logging
import threading
import time
from typing import Any, NamedTuple

from pydbcp.core.config import settings
from pydbcp.core.diagnostics import EventLog
from pydbcp.core.exceptions import SQLErrorList

from .factory import ConnectionFactory

_log = logging.getLogger(__name__)


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class PoolManager:
    """Named pools, each with a ConnectionFactory and a LIFO of idle connections."""

    def __init__(
        self,
        *,
        pool_size: int | None = None,
        max_age: float | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self._factories: dict[str, ConnectionFactory] = {}
        self._pools: dict[str, list[_PoolEntry]] = {}
        self._opened_at: dict[int, float] = {}
        self._lock = threading.Lock()
        self._pool_size: int = (
            pool_size if pool_size is not None else settings.EXTERNAL_DB_POOL_SIZE
        )
        self._max_age: float = float(
            max_age if max_age is not None else settings.EXTERNAL_DB_POOL_MAX_AGE_SEC
        )
        self._event_log = event_log

    def register(self, name: str, factory: ConnectionFactory) -> None:
        """Attach *factory* to pool *name* (replaces a previous factory)."""
        with self._lock:
            self._factories[name] = factory
        self._record(f"register {name}: {factory!r}")

    def get_connection(self, name: str) -> Any:
        """Get a connection for pool *name* (idle one or freshly acquired).

        Errors from the factory propagate unchanged. Every connection handed
        out must come back through ``release()`` or ``discard()``.
        """
        while True:
            entry = self._pop(name)
            if entry is None:
                break
            if self._is_expired(entry):
                self._close_quiet(entry.conn)
                continue
            try:
                entry.conn.rollback()
            except Exception as e:
                _log.warning("discard idle connection of %s: rollback failed: %s", name, e)
                self._close_quiet(entry.conn)
                continue
            with self._lock:
                self._opened_at[id(entry.conn)] = entry.created_at
            return entry.conn

        with self._lock:
            factory = self._factories.get(name)
        if factory is None:
            raise KeyError(f"No connection factory registered for pool {name!r}")
        conn = factory.acquire()
        with self._lock:
            self._opened_at[id(conn)] = time.monotonic()
        self._record(f"acquire {name}")
        return conn

    def release(self, conn: Any, name: str) -> None:
        """Return a connection to the pool (or close it if the pool is full)."""
        with self._lock:
            created_at = self._opened_at.pop(id(conn), time.monotonic())
        try:
            conn.rollback()
        except Exception as e:
            _log.warning("close connection of %s: rollback failed: %s", name, e)
            self._close_quiet(conn)
            return

        with self._lock:
            pool = self._pools.setdefault(name, [])
            if len(pool) < self._pool_size:
                pool.append(
                    _PoolEntry(conn=conn, created_at=created_at, last_used=time.monotonic())
                )
                return

        self._close_quiet(conn)

    def discard(self, conn: Any) -> None:
        """Close a checked-out connection that will not be released, and forget it."""
        with self._lock:
            self._opened_at.pop(id(conn), None)
        self._close_quiet(conn)

    def dispose(self, name: str | None = None) -> None:
        """Close idle connections of pool *name*; ``None`` = all pools.

        Every connection is closed even when some fail; the failures are
        raised afterwards as one SQLErrorList in the order they occurred.
        """
        with self._lock:
            if name is not None:
                entries = self._pools.pop(name, [])
            else:
                entries = [e for pool in self._pools.values() for e in pool]
                self._pools.clear()

        errors: list[Exception] = []
        for e in entries:
            try:
                e.conn.close()
            except Exception as exc:
                _log.warning("close failed during dispose of %s: %s", name or "all pools", exc)
                self._record("close failed during dispose", exc)
                errors.append(exc)
        self._record(
            f"dispose {name or 'all pools'}: "
            f"closed={len(entries) - len(errors)} failed={len(errors)}"
        )
        if errors:
            raise SQLErrorList(errors)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            total = sum(len(p) for p in self._pools.values())
            return {
                "pools": len(self._factories),
                "idle_connections": total,
                "checked_out": len(self._opened_at),
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _pop(self, name: str) -> _PoolEntry | None:
        with self._lock:
            pool = self._pools.get(name)
            if pool:
                return pool.pop()
        return None

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return (time.monotonic() - entry.created_at) > self._max_age

    def _record(self, message: str, exc: BaseException | None = None) -> None:
        if self._event_log is not None:
            self._event_log.record(message, exc)

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except Exception as e:
            _log.debug("ignored close error: %s", e)


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Return the singleton PoolManager (thread-safe double-checked locking)."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
    return _pool_manager
