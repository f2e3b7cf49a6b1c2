"""
Integration tests for availability search.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest
from sqlalchemy.engine import Engine

from hotel_booking.errors import InvalidDateRangeError
from hotel_booking.schemas.reservations import ReservationCreate
from hotel_booking.services.booking import cancel_reservation, create_reservation
from hotel_booking.services.conflicts import find_available_rooms


def _book(engine: Engine, room_id: int, check_in_date: date, check_out_date: date) -> int:
    record = create_reservation(
        engine,
        ReservationCreate(
            guest_id=1,
            room_id=room_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            number_of_guests=1,
        ),
    )
    return record.id


@pytest.mark.integration
def test_booked_room_is_excluded(
    db_engine: Engine, make_room: Callable[..., int], fixed_today: date
) -> None:
    booked_room = make_room()
    free_room = make_room()
    _book(db_engine, booked_room, date(2025, 7, 1), date(2025, 7, 4))

    available = find_available_rooms(db_engine, date(2025, 7, 2), date(2025, 7, 3))

    assert [room.room_id for room in available] == [free_room]


@pytest.mark.integration
def test_adjacent_stay_leaves_room_available(
    db_engine: Engine, make_room: Callable[..., int], fixed_today: date
) -> None:
    room_id = make_room()
    _book(db_engine, room_id, date(2025, 7, 1), date(2025, 7, 4))

    available = find_available_rooms(db_engine, date(2025, 7, 4), date(2025, 7, 6))

    assert [room.room_id for room in available] == [room_id]


@pytest.mark.integration
def test_cancelled_stay_frees_room(
    db_engine: Engine, make_room: Callable[..., int], fixed_today: date
) -> None:
    room_id = make_room()
    reservation_id = _book(db_engine, room_id, date(2025, 7, 1), date(2025, 7, 4))
    cancel_reservation(db_engine, reservation_id)

    available = find_available_rooms(db_engine, date(2025, 7, 1), date(2025, 7, 4))

    assert [room.room_id for room in available] == [room_id]


@pytest.mark.integration
def test_capacity_and_inactive_filters(db_engine: Engine, make_room: Callable[..., int]) -> None:
    make_room(max_occupancy=2)
    family_room = make_room(max_occupancy=4, base_rate="180.00", price_adjustment="20.00")
    make_room(max_occupancy=4, is_active=False)

    available = find_available_rooms(
        db_engine, date(2025, 7, 1), date(2025, 7, 2), occupant_count=3
    )

    assert len(available) == 1
    assert available[0].room_id == family_room
    assert available[0].nightly_rate == Decimal("200.00")
    assert available[0].max_occupancy == 4


@pytest.mark.integration
def test_invalid_range_is_rejected(db_engine: Engine) -> None:
    with pytest.raises(InvalidDateRangeError):
        find_available_rooms(db_engine, date(2025, 7, 2), date(2025, 7, 2))
