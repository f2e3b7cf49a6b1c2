"""
Unit tests for driver error translation in the transaction scope.
"""

from __future__ import annotations

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from hotel_booking.db.engine import (
    build_engine,
    check_engine_health,
    is_exclusion_violation,
    is_lock_failure,
    transaction,
)
from hotel_booking.errors import (
    BookingError,
    ConcurrentModificationError,
    RoomUnavailableError,
)


class FakePgError(Exception):
    """Stand-in for a psycopg2 error carrying a SQLSTATE."""

    def __init__(self, message: str, pgcode: str) -> None:
        super().__init__(message)
        self.pgcode = pgcode


@pytest.fixture
def memory_engine():  # type: ignore[no-untyped-def]
    test_engine = build_engine("sqlite://")
    yield test_engine
    test_engine.dispose()


@pytest.mark.unit
@pytest.mark.parametrize("code", ["55P03", "40001", "40P01"])
def test_postgres_lock_failures_are_detected(code: str) -> None:
    err = OperationalError("UPDATE rooms", {}, FakePgError("lock failure", code))

    assert is_lock_failure(err)
    assert not is_exclusion_violation(err)


@pytest.mark.unit
def test_sqlite_busy_is_a_lock_failure() -> None:
    err = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))

    assert is_lock_failure(err)


@pytest.mark.unit
def test_exclusion_violation_is_detected() -> None:
    err = IntegrityError("INSERT", {}, FakePgError("conflicting key value", "23P01"))

    assert is_exclusion_violation(err)
    assert not is_lock_failure(err)


@pytest.mark.unit
def test_transaction_translates_lock_failure(memory_engine) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ConcurrentModificationError) as exc_info:
        with transaction(memory_engine):
            raise OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))

    assert exc_info.value.retryable is True


@pytest.mark.unit
def test_transaction_translates_exclusion_violation(memory_engine) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(RoomUnavailableError):
        with transaction(memory_engine):
            raise IntegrityError("INSERT", {}, FakePgError("overlap", "23P01"))


@pytest.mark.unit
def test_transaction_passes_other_errors_through(memory_engine) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(IntegrityError):
        with transaction(memory_engine):
            raise IntegrityError("INSERT", {}, sqlite3.IntegrityError("NOT NULL constraint failed"))

    with pytest.raises(ValueError):
        with transaction(memory_engine):
            raise ValueError("boom")


@pytest.mark.unit
def test_booking_errors_are_not_retryable_by_default() -> None:
    assert BookingError.retryable is False
    assert RoomUnavailableError.retryable is True


@pytest.mark.unit
def test_check_engine_health(memory_engine) -> None:  # type: ignore[no-untyped-def]
    assert check_engine_health(memory_engine) is True
