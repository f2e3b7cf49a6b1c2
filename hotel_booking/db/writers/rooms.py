from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from hotel_booking.models.rooms import Room, RoomCategory, RoomStatus
from hotel_booking.utils.datetime import utc_now


def insert_room_category(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a room category.

    Args:
        conn (Connection): Connection inside an open transaction.
        data (dict[str, Any]): name, base_rate and max_occupancy.

    Returns:
        int: ID of the inserted category.
    """
    result = conn.execute(insert(RoomCategory).values(**data, created_at=utc_now()))
    return int(result.inserted_primary_key[0])


def insert_room(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a bookable room.

    Args:
        conn (Connection): Connection inside an open transaction.
        data (dict[str, Any]): room_number, category_id and optional
            price_adjustment, max_occupancy, status, is_active.

    Returns:
        int: ID of the inserted room.
    """
    now = utc_now()
    row = {
        "price_adjustment": 0,
        "status": RoomStatus.AVAILABLE,
        "is_active": True,
        **data,
        "created_at": now,
        "updated_at": now,
    }
    result = conn.execute(insert(Room).values(**row))
    return int(result.inserted_primary_key[0])


def update_room_status(conn: Connection, room_id: int, status: RoomStatus) -> None:
    """
    Set the occupancy status of a room.

    Only the room status synchronizer should call this during booking
    operations.

    Args:
        conn (Connection): Connection inside an open transaction.
        room_id (int): Room ID.
        status (RoomStatus): New occupancy status.
    """
    stmt = update(Room).where(Room.id == room_id).values(status=status, updated_at=utc_now())
    conn.execute(stmt)
