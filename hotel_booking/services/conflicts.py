"""
Date-range conflict detection and room availability.

A stay occupies [check_in, check_out). Two stays on the same room conflict
when ``a.check_in < b.check_out and b.check_in < a.check_out``; a stay ending
on the day another begins is not a conflict (same-day turnover).

``has_conflict`` must run on the connection of the transaction that will
write the reservation, after the room row has been locked. Running it on a
separate connection reopens the check-then-insert race.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from hotel_booking.db.readers.reservations import find_overlapping_reservation_ids
from hotel_booking.db.readers.rooms import list_active_rooms
from hotel_booking.errors import InvalidDateRangeError
from hotel_booking.metrics import booking_conflicts
from hotel_booking.schemas.reservations import AvailableRoom

logger = structlog.get_logger(__name__)


def has_conflict(
    conn: Connection,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    """
    Check whether any non-cancelled reservation on the room overlaps the range.

    Args:
        conn: Connection inside the caller's transaction
        room_id: Room ID
        check_in: Candidate check-in date (inclusive)
        check_out: Candidate check-out date (exclusive)
        exclude_reservation_id: Reservation to ignore, used when re-dating it

    Returns:
        bool: True if an overlapping reservation exists
    """
    conflicting = find_overlapping_reservation_ids(
        conn, room_id, check_in, check_out, exclude_reservation_id=exclude_reservation_id
    )
    if not conflicting:
        return False

    booking_conflicts.labels(source="detector").inc()
    logger.warning(
        "room_conflict_detected",
        room_id=room_id,
        requested_check_in=check_in.isoformat(),
        requested_check_out=check_out.isoformat(),
        conflicting_reservation_id=conflicting[0],
    )
    return True


def find_available_rooms(
    engine: Engine,
    check_in: date,
    check_out: date,
    occupant_count: Optional[int] = None,
) -> list[AvailableRoom]:
    """
    List active rooms with enough capacity and no conflict in the range.

    This is a read-only snapshot for search results; a room listed here can
    still be taken before the guest books it.

    Args:
        engine: SQLAlchemy engine
        check_in: Requested check-in date
        check_out: Requested check-out date
        occupant_count: Minimum capacity required

    Returns:
        list[AvailableRoom]: Bookable rooms ordered by room number

    Raises:
        InvalidDateRangeError: If check-out is not after check-in
    """
    if check_in >= check_out:
        raise InvalidDateRangeError(
            f"Check-out date ({check_out}) must be after check-in date ({check_in})"
        )

    available: list[AvailableRoom] = []
    with engine.connect() as conn:
        for room in list_active_rooms(conn, min_occupancy=occupant_count):
            if find_overlapping_reservation_ids(conn, room["id"], check_in, check_out):
                continue
            available.append(
                AvailableRoom(
                    room_id=room["id"],
                    room_number=room["room_number"],
                    nightly_rate=room["nightly_rate"],
                    max_occupancy=room["max_occupancy"],
                    status=room["status"],
                )
            )

    logger.info(
        "availability_searched",
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        occupant_count=occupant_count,
        available_count=len(available),
    )
    return available
