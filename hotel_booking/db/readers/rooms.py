from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from hotel_booking.models.rooms import Room, RoomCategory


def _room_query() -> Any:
    return select(
        Room.id,
        Room.room_number,
        Room.status,
        Room.is_active,
        Room.price_adjustment,
        RoomCategory.base_rate,
        func.coalesce(Room.max_occupancy, RoomCategory.max_occupancy).label("max_occupancy"),
    ).join(RoomCategory, Room.category_id == RoomCategory.id)


def _to_room(row: Any) -> dict[str, Any]:
    room = dict(row._mapping)
    base_rate = Decimal(str(room.pop("base_rate")))
    adjustment = Decimal(str(room.pop("price_adjustment") or 0))
    room["nightly_rate"] = base_rate + adjustment
    return room


def get_room(conn: Connection, room_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a room with its resolved nightly rate and max occupancy.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (int): Room ID.

    Returns:
        Optional[dict[str, Any]]: Room fields plus nightly_rate, or None if not found.
    """
    row = conn.execute(_room_query().where(Room.id == room_id)).fetchone()
    return _to_room(row) if row else None


def lock_room(conn: Connection, room_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a room and hold a row lock on it until the transaction ends.

    Every booking write for a room takes this lock before checking for
    conflicts, so concurrent writers for the same room run one at a time.
    Only the rooms row is locked; the category row stays shared.

    Args:
        conn (Connection): Connection inside an open transaction.
        room_id (int): Room ID.

    Returns:
        Optional[dict[str, Any]]: Room fields plus nightly_rate, or None if not found.
    """
    stmt = _room_query().where(Room.id == room_id).with_for_update(of=Room.__table__)
    row = conn.execute(stmt).fetchone()
    return _to_room(row) if row else None


def list_active_rooms(conn: Connection, min_occupancy: Optional[int] = None) -> list[dict[str, Any]]:
    """
    List active rooms ordered by room number, optionally filtered by capacity.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        min_occupancy (Optional[int]): Only rooms that can hold at least this many guests.

    Returns:
        list[dict[str, Any]]: Room fields plus nightly_rate.
    """
    stmt = _room_query().where(Room.is_active.is_(True))
    if min_occupancy is not None:
        stmt = stmt.where(
            func.coalesce(Room.max_occupancy, RoomCategory.max_occupancy) >= min_occupancy
        )
    rows = conn.execute(stmt.order_by(Room.room_number)).fetchall()
    return [_to_room(row) for row in rows]
