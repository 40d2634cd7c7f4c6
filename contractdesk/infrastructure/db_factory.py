"""
Postgres connections for the contracts database.

The CLI reads contracts through one shared `psycopg_pool.ConnectionPool`
owned by `PoolManager`; bulk loaders open a dedicated connection through
`connect`. Both paths retry transient connection failures with tenacity.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection, sql
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from contractdesk.config import Settings, get_settings
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

APPLICATION_NAME = "contractdesk"

_TRANSIENT = (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout)

_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(_TRANSIENT),
    reraise=True,
)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """Bound how long the current session may spend on a single statement."""
    if timeout_ms > 0:
        cursor.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms)))
        )


@_retry_transient
def connect(dsn: Optional[str] = None) -> Connection:
    """
    Open a dedicated connection, retrying transient failures.

    Meant for one-off work such as loading generated contracts; readers go
    through `PoolManager`.
    """
    return psycopg.connect(dsn or build_dsn(), application_name=APPLICATION_NAME)


class PoolManager:
    """
    Process-wide owner of the contracts connection pool.

    The pool is created lazily on first use and closed at interpreter exit.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._pool = None
                atexit.register(instance.close)
                cls._instance = instance
            return cls._instance

    @_retry_transient
    def _open(self, settings: Settings) -> ConnectionPool:
        pool = ConnectionPool(
            conninfo=build_dsn(settings),
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            kwargs={"application_name": APPLICATION_NAME},
            open=False,
        )
        try:
            pool.open(wait=True, timeout=settings.db_connect_timeout_seconds)
        except PoolTimeout:
            pool.close()
            raise
        return pool

    def pool(self) -> ConnectionPool:
        with self._lock:
            if self._pool is None:
                settings = get_settings()
                self._pool = self._open(settings)
                log.debug(
                    "Contracts pool opened",
                    extra={
                        "min_size": settings.db_pool_min_size,
                        "max_size": settings.db_pool_max_size,
                    },
                )
            return self._pool

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        """Borrow a pooled connection; it goes back to the pool on exit."""
        with self.pool().connection() as conn:
            yield conn

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            try:
                pool.close()
            except psycopg.Error:
                log.warning("Contracts pool did not close cleanly", exc_info=True)


__all__ = [
    "APPLICATION_NAME",
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "connect",
]
