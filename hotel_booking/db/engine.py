"""
SQLAlchemy engine construction and the booking transaction scope.

Every booking operation runs inside ``transaction()``: one connection, one
transaction, guaranteed rollback on any exit path. The scope is also where
driver-level failures are translated into booking errors, so callers only
ever see the error taxonomy from hotel_booking.errors.

Locking per backend:
    - PostgreSQL: callers take ``SELECT ... FOR UPDATE`` on the room row (and
      reservation row) before the conflict check. ``lock_timeout`` bounds the
      wait. An exclusion constraint on reservations backs this up.
    - SQLite: ``FOR UPDATE`` does not exist, so every transaction opens with
      ``BEGIN IMMEDIATE`` and holds the database write lock from the start.
      The driver busy timeout bounds the wait.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError

from hotel_booking.config import DATABASE_URL, DB_MAX_OVERFLOW, DB_POOL_SIZE, LOCK_TIMEOUT_SECONDS
from hotel_booking.errors import ConcurrentModificationError, RoomUnavailableError
from hotel_booking.metrics import booking_conflicts

logger = structlog.get_logger(__name__)

# PostgreSQL SQLSTATEs that mean "try again": lock_not_available,
# serialization_failure, deadlock_detected
LOCK_FAILURE_CODES = {"55P03", "40001", "40P01"}
EXCLUSION_VIOLATION_CODE = "23P01"


def build_engine(url: str, lock_timeout: float = LOCK_TIMEOUT_SECONDS) -> Engine:
    """
    Create an engine configured for booking transactions on the given backend.

    Args:
        url: SQLAlchemy database URL
        lock_timeout: Seconds a SQLite connection waits for the write lock

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False, "timeout": lock_timeout},
            echo=False,
        )

        @event.listens_for(sqlite_engine, "connect")
        def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
            # Let SQLAlchemy emit BEGIN itself instead of pysqlite's deferred BEGIN
            dbapi_connection.isolation_level = None

        @event.listens_for(sqlite_engine, "begin")
        def _begin_immediate(conn: Connection) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return sqlite_engine

    return create_engine(
        url,
        future=True,
        pool_size=DB_POOL_SIZE,  # Number of connections to maintain in the pool
        max_overflow=DB_MAX_OVERFLOW,  # Additional connections when pool is exhausted
        pool_pre_ping=True,  # Verify connections before using (detect stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False,
    )


engine: Engine = build_engine(DATABASE_URL)


def check_engine_health(target: Engine | None = None) -> bool:
    """
    Check if the database engine is healthy and connections are working.

    Used by the /ready endpoint before allowing traffic to the service.

    Args:
        target: Engine to check (defaults to the application engine)

    Returns:
        bool: True if the database is reachable, False otherwise
    """
    try:
        with (target or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


def _sqlstate(err: DBAPIError) -> str | None:
    orig = err.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_lock_failure(err: DBAPIError) -> bool:
    """True when the store aborted because a lock or serialization check failed."""
    if _sqlstate(err) in LOCK_FAILURE_CODES:
        return True
    return "database is locked" in str(err.orig) or "database table is locked" in str(err.orig)


def is_exclusion_violation(err: DBAPIError) -> bool:
    """True when the no-overlap exclusion constraint rejected the write."""
    return _sqlstate(err) == EXCLUSION_VIOLATION_CODE


def _apply_lock_timeout(conn: Connection) -> None:
    if conn.dialect.name == "postgresql":
        # SET does not take bind parameters; the value is an int we control
        conn.exec_driver_sql(f"SET LOCAL lock_timeout = {int(LOCK_TIMEOUT_SECONDS * 1000)}")


@contextmanager
def transaction(bound_engine: Engine) -> Iterator[Connection]:
    """
    Run a block as one atomic unit of work.

    Commits when the block exits normally and rolls back on any exception.
    Lock timeouts, deadlocks and serialization failures are re-raised as
    ConcurrentModificationError; an exclusion-constraint violation is
    re-raised as RoomUnavailableError. Other errors propagate unchanged.

    Args:
        bound_engine: Engine to open the transaction on

    Yields:
        Connection: Connection bound to the open transaction

    Example:
        >>> with transaction(engine) as conn:
        ...     room = lock_room(conn, room_id)
        ...     if has_conflict(conn, room_id, check_in, check_out):
        ...         raise RoomUnavailableError(room_id)
        ...     insert_reservation(conn, row)
    """
    try:
        with bound_engine.begin() as conn:
            _apply_lock_timeout(conn)
            yield conn
    except DBAPIError as err:
        if is_lock_failure(err):
            logger.warning("transaction_lock_failure", error=str(err.orig))
            raise ConcurrentModificationError(
                "Could not acquire booking locks in time; retry the request"
            ) from err
        if is_exclusion_violation(err):
            booking_conflicts.labels(source="constraint").inc()
            logger.warning("exclusion_constraint_violation", error=str(err.orig))
            raise RoomUnavailableError() from err
        raise
