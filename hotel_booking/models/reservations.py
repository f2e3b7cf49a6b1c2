# models/reservations.py

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    Text,
)
from sqlalchemy.sql import func

from hotel_booking.models.base import Base


class ReservationStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    REFUND_DUE = "refund_due"


# Statuses that hold the room for their dates under the no-overlap invariant
ACTIVE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)

TERMINAL_STATUSES = (
    ReservationStatus.CHECKED_OUT,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Reservation(Base):
    """
    ORM model for a guest's stay in a room.

    A stay occupies the half-open interval [check_in_date, check_out_date).
    Rows are never deleted: cancellation is a terminal status. All mutations go
    through hotel_booking.services.booking so that each one runs inside a
    single locked transaction.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_reservations_valid_date_range"),
        CheckConstraint("number_of_guests > 0", name="ck_reservations_positive_guests"),
        CheckConstraint("total_amount >= 0", name="ck_reservations_non_negative_total"),
        Index("ix_reservations_room_dates", "room_id", "check_in_date", "check_out_date"),
    )

    id = Column(Integer, primary_key=True)
    room_id = Column(
        Integer, ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    guest_id = Column(Integer, nullable=False, index=True)  # Owned by the guest directory
    created_by = Column(Integer, nullable=True)  # Acting user id, when known
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    number_of_guests = Column(SmallInteger, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(ReservationStatus, name="reservation_status", values_callable=_enum_values),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    special_requests = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    actual_check_in = Column(DateTime(timezone=True), nullable=True)
    actual_check_out = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
