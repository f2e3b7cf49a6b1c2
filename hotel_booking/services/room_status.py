"""
Room occupancy synchronization driven by reservation lifecycle events.

Room status is shared by booking, housekeeping and maintenance, so booking
code never writes it directly. It reports a named event here instead, and the
decision is keyed to the specific reservation: an ``occupied`` status that
belongs to a different reservation is never overwritten.

The decision (``next_room_status``) is a pure function of facts gathered from
the database; ``sync_room_status`` gathers those facts and applies the result
inside the caller's transaction.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import Any, Mapping, Optional

import structlog
from sqlalchemy.engine import Connection

from hotel_booking.db.readers.reservations import find_room_holder_ids
from hotel_booking.db.writers.rooms import update_room_status
from hotel_booking.metrics import room_status_changes
from hotel_booking.models.reservations import ReservationStatus
from hotel_booking.models.rooms import RoomStatus

logger = structlog.get_logger(__name__)


class RoomEvent(str, enum.Enum):
    CREATED = "created"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


# Events after which the reservation no longer needs the room
RELEASE_EVENTS = (RoomEvent.CANCELLED, RoomEvent.NO_SHOW)


def reservation_holds_room(reservation: Mapping[str, Any], today: date) -> bool:
    """
    Whether this reservation is what currently keeps its room occupied.

    True for a checked-in guest, and for a confirmed stay that covers today
    (a booking made for today marks the room occupied on creation).
    """
    status = ReservationStatus(reservation["status"])
    if status is ReservationStatus.CHECKED_IN:
        return True
    return (
        status is ReservationStatus.CONFIRMED
        and reservation["check_in_date"] <= today < reservation["check_out_date"]
    )


def next_room_status(
    current: RoomStatus,
    event: RoomEvent,
    starts_today: bool,
    held_by_reservation: bool,
    held_by_other: bool,
    held_after: bool = False,
) -> Optional[RoomStatus]:
    """
    Decide the room's new status after a reservation event.

    Args:
        current: Room status now
        event: What happened to the reservation
        starts_today: The reservation's (new) check-in date is today
        held_by_reservation: Before the event, this reservation kept the room occupied
        held_by_other: Another reservation keeps the room occupied
        held_after: After the event, this reservation keeps the room occupied

    Returns:
        Optional[RoomStatus]: New status, or None to leave the room unchanged
    """
    if event is RoomEvent.CREATED:
        return RoomStatus.OCCUPIED if starts_today else None

    if event is RoomEvent.CHECKED_IN:
        return RoomStatus.OCCUPIED

    if event is RoomEvent.CHECKED_OUT:
        # Next guest may already be checked in for a same-day turnover
        return None if held_by_other else RoomStatus.AVAILABLE

    releasable = current is RoomStatus.OCCUPIED and held_by_reservation and not held_by_other

    if event in RELEASE_EVENTS:
        return RoomStatus.AVAILABLE if releasable else None

    if event is RoomEvent.RESCHEDULED:
        # The new dates still cover today, or now do
        if held_after:
            return RoomStatus.OCCUPIED
        return RoomStatus.AVAILABLE if releasable else None

    raise ValueError(f"Unhandled room event: {event}")


def sync_room_status(
    conn: Connection,
    room: Mapping[str, Any],
    reservation: Mapping[str, Any],
    event: RoomEvent,
    today: date,
    previous: Optional[Mapping[str, Any]] = None,
) -> Optional[RoomStatus]:
    """
    Apply the room status implied by a reservation event.

    Args:
        conn: Connection inside the booking transaction (room row already locked)
        room: Room row as returned by lock_room
        reservation: Reservation row after the event
        event: Lifecycle event
        today: The property's current date
        previous: Reservation row before the event (defaults to reservation)

    Returns:
        Optional[RoomStatus]: The status written, or None if nothing changed
    """
    current = RoomStatus(room["status"])
    before = previous if previous is not None else reservation

    held_by_other = bool(
        find_room_holder_ids(
            conn, room["id"], today, exclude_reservation_id=reservation["id"]
        )
    )
    new_status = next_room_status(
        current,
        event,
        starts_today=reservation["check_in_date"] == today,
        held_by_reservation=reservation_holds_room(before, today),
        held_by_other=held_by_other,
        held_after=reservation_holds_room(reservation, today),
    )

    if new_status is None or new_status is current:
        logger.debug(
            "room_status_unchanged",
            room_id=room["id"],
            reservation_id=reservation["id"],
            room_event=event.value,
            status=current.value,
        )
        return None

    update_room_status(conn, room["id"], new_status)
    room_status_changes.labels(status=new_status.value).inc()
    logger.info(
        "room_status_changed",
        room_id=room["id"],
        reservation_id=reservation["id"],
        room_event=event.value,
        previous_status=current.value,
        status=new_status.value,
    )
    return new_status
