from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from hotel_booking.config import DEBUG
from hotel_booking.models.reservations import PaymentStatus, Reservation
from hotel_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Columns a booking operation may change after creation. Anything else is a bug
# in the caller, never something to interpolate into an UPDATE.
UPDATABLE_COLUMNS = frozenset(
    {
        "check_in_date",
        "check_out_date",
        "number_of_guests",
        "total_amount",
        "special_requests",
        "status",
        "payment_status",
        "cancellation_reason",
        "actual_check_in",
        "actual_check_out",
    }
)


def insert_reservation(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a new reservation inside the caller's transaction.

    Args:
        conn (Connection): Connection inside an open transaction.
        data (dict[str, Any]): Column values for the new row.

    Returns:
        int: ID of the inserted reservation.
    """
    now = utc_now()
    row = {**data, "created_at": now, "updated_at": now}

    if DEBUG:
        logger.debug("reservation_insert", row=row)

    result = conn.execute(insert(Reservation).values(**row))
    return int(result.inserted_primary_key[0])


def update_reservation(conn: Connection, reservation_id: int, data: dict[str, Any]) -> None:
    """
    Update selected columns of an existing reservation.

    Args:
        conn (Connection): Connection inside an open transaction.
        reservation_id (int): Reservation ID.
        data (dict[str, Any]): Columns to change; keys must be in UPDATABLE_COLUMNS.

    Raises:
        ValueError: If data names a column outside UPDATABLE_COLUMNS.
    """
    unknown = set(data) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Reservation columns are not updatable: {sorted(unknown)}")

    stmt = (
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .values(**data, updated_at=utc_now())
    )
    conn.execute(stmt)


def update_payment_status(
    conn: Connection, reservation_id: int, payment_status: PaymentStatus
) -> None:
    """
    Record the coarse payment status reported by the payment collaborator.

    Args:
        conn (Connection): Connection inside an open transaction.
        reservation_id (int): Reservation ID.
        payment_status (PaymentStatus): New payment status.
    """
    update_reservation(conn, reservation_id, {"payment_status": payment_status})
