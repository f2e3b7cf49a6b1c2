# models/rooms.py

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func

from hotel_booking.models.base import Base


class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class RoomCategory(Base):
    """
    ORM model for room categories (room types).

    A category carries the base nightly rate and the default maximum occupancy
    shared by every room of that type.
    """

    __tablename__ = "room_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    base_rate = Column(Numeric(10, 2), nullable=False)
    max_occupancy = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Room(Base):
    """
    ORM model for a bookable room.

    The nightly rate is the category base rate plus this room's
    price_adjustment. Rooms are soft-deactivated through is_active and never
    deleted while reservations reference them. The status column is written
    only by the room status synchronizer and by administrative edits.
    """

    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True)
    room_number = Column(String(10), nullable=False, unique=True)
    category_id = Column(
        Integer, ForeignKey("room_categories.id", ondelete="RESTRICT"), nullable=False
    )
    price_adjustment = Column(Numeric(10, 2), nullable=False, default=0)
    max_occupancy = Column(Integer, nullable=True)  # Overrides the category when set
    status = Column(
        Enum(
            RoomStatus,
            name="room_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
