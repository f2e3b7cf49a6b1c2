from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.engine import Connection

from hotel_booking.models.reservations import Reservation, ReservationStatus


def get_reservation(
    conn: Connection, reservation_id: int, lock: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a reservation row.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        reservation_id (int): Reservation ID.
        lock (bool): If True, hold a row lock until the transaction ends.

    Returns:
        Optional[dict[str, Any]]: Reservation columns, or None if not found.
    """
    stmt = select(Reservation.__table__).where(Reservation.id == reservation_id)
    if lock:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).fetchone()
    return dict(row._mapping) if row else None


def find_overlapping_reservation_ids(
    conn: Connection,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[int] = None,
) -> list[int]:
    """
    Find non-cancelled reservations on a room that overlap [check_in, check_out).

    Two stays overlap when each one starts before the other ends. A stay that
    ends on the day another begins does not overlap it.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        room_id (int): Room ID.
        check_in (date): Candidate check-in date (inclusive).
        check_out (date): Candidate check-out date (exclusive).
        exclude_reservation_id (Optional[int]): Reservation to ignore (date edits).

    Returns:
        list[int]: IDs of overlapping reservations ordered by check-in date.
    """
    stmt = select(Reservation.id).where(
        Reservation.room_id == room_id,
        Reservation.status != ReservationStatus.CANCELLED,
        Reservation.check_in_date < check_out,
        Reservation.check_out_date > check_in,
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)
    return list(conn.execute(stmt.order_by(Reservation.check_in_date)).scalars().all())


def find_room_holder_ids(
    conn: Connection,
    room_id: int,
    on_date: date,
    exclude_reservation_id: Optional[int] = None,
) -> list[int]:
    """
    Find reservations that currently keep a room occupied.

    A reservation holds its room when the guest is checked in (including a
    guest who has not yet checked out past their departure date) or when it is
    confirmed and its stay covers ``on_date``.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        room_id (int): Room ID.
        on_date (date): The property's current date.
        exclude_reservation_id (Optional[int]): Reservation to ignore.

    Returns:
        list[int]: IDs of reservations holding the room.
    """
    stmt = select(Reservation.id).where(
        Reservation.room_id == room_id,
        or_(
            Reservation.status == ReservationStatus.CHECKED_IN,
            and_(
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.check_in_date <= on_date,
                Reservation.check_out_date > on_date,
            ),
        ),
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)
    return list(conn.execute(stmt).scalars().all())
