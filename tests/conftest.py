"""
Shared fixtures for booking engine tests.

Integration tests run against a file-backed SQLite database created fresh for
each test, so they need no external services. SQLite transactions open with
BEGIN IMMEDIATE (see hotel_booking.db.engine), which gives the same
one-writer-per-room serialization the PostgreSQL row locks give.
"""

from __future__ import annotations

import os

# Must be set before hotel_booking.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Generator, Optional
from unittest.mock import patch

import pytest
from sqlalchemy.engine import Engine

from hotel_booking.db.engine import build_engine, transaction
from hotel_booking.db.writers.rooms import insert_room, insert_room_category
from hotel_booking.models.base import Base
from hotel_booking.models.rooms import RoomStatus

TODAY = date(2025, 6, 10)


@pytest.fixture
def db_engine(tmp_path: Any) -> Generator[Engine, None, None]:
    """Fresh SQLite database with the booking schema."""
    test_engine = build_engine(f"sqlite:///{tmp_path}/booking.db")
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def make_room(db_engine: Engine) -> Callable[..., int]:
    """
    Factory that inserts a room (and a category for it) and returns the room ID.
    """
    counter = {"n": 0}

    def _make_room(
        base_rate: str = "100.00",
        price_adjustment: str = "0",
        max_occupancy: int = 2,
        room_max_occupancy: Optional[int] = None,
        status: RoomStatus = RoomStatus.AVAILABLE,
        is_active: bool = True,
    ) -> int:
        counter["n"] += 1
        with transaction(db_engine) as conn:
            category_id = insert_room_category(
                conn,
                {
                    "name": f"Category {counter['n']}",
                    "base_rate": Decimal(base_rate),
                    "max_occupancy": max_occupancy,
                },
            )
            return insert_room(
                conn,
                {
                    "room_number": str(100 + counter["n"]),
                    "category_id": category_id,
                    "price_adjustment": Decimal(price_adjustment),
                    "max_occupancy": room_max_occupancy,
                    "status": status,
                    "is_active": is_active,
                },
            )

    return _make_room


@pytest.fixture
def fixed_today() -> Generator[date, None, None]:
    """Pin the booking orchestrator's calendar to TODAY."""
    with patch("hotel_booking.services.booking.today", return_value=TODAY):
        yield TODAY


@pytest.fixture(autouse=True)
def no_notifications() -> Generator[Any, None, None]:
    """Keep booking tests from queueing real notification deliveries."""
    with patch("hotel_booking.services.booking.dispatch_reservation_created") as mock_dispatch:
        yield mock_dispatch
