"""
Booking transaction orchestrator.

Every public operation here is one all-or-nothing transaction:

    lock room row -> (lock reservation row) -> validate -> conflict check
    -> price -> write reservation -> sync room status -> commit

Locks are always taken room first, then reservation, so two operations can
never wait on each other in opposite order. Validation failures raise before
anything is written; any exception rolls the whole transaction back, so a
rejected operation leaves reservations and room status exactly as they were.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from hotel_booking.db.engine import transaction
from hotel_booking.db.readers.reservations import get_reservation as read_reservation
from hotel_booking.db.readers.rooms import lock_room
from hotel_booking.db.writers.reservations import (
    insert_reservation,
    update_payment_status as write_payment_status,
    update_reservation,
)
from hotel_booking.errors import (
    BookingError,
    IllegalTransitionError,
    InvalidDateRangeError,
    NotFoundError,
    OccupancyExceededError,
    PermissionDeniedError,
    RoomUnavailableError,
)
from hotel_booking.metrics import booking_duration, booking_operations
from hotel_booking.models.reservations import PaymentStatus, ReservationStatus
from hotel_booking.schemas.reservations import (
    Actor,
    ActorRole,
    ReservationCreate,
    ReservationRecord,
    ReservationUpdate,
)
from hotel_booking.services.conflicts import has_conflict
from hotel_booking.services.notifications import dispatch_reservation_created
from hotel_booking.services.pricing import calculate_price
from hotel_booking.services.room_status import RoomEvent, sync_room_status
from hotel_booking.services.state_machine import is_terminal, transition
from hotel_booking.utils.datetime import today, utc_now

logger = structlog.get_logger(__name__)

# Payment states that owe the guest money back once the stay is cancelled
REFUNDABLE_PAYMENT_STATUSES = (PaymentStatus.PAID, PaymentStatus.PARTIALLY_PAID)


@contextmanager
def _track(operation: str) -> Iterator[None]:
    with booking_duration.labels(operation=operation).time():
        try:
            yield
        except BookingError as e:
            booking_operations.labels(operation=operation, outcome=type(e).__name__).inc()
            raise
        except Exception:
            booking_operations.labels(operation=operation, outcome="error").inc()
            raise
    booking_operations.labels(operation=operation, outcome="success").inc()


def _validate_date_range(check_in: date, check_out: date) -> None:
    if check_in >= check_out:
        raise InvalidDateRangeError(
            f"Check-out date ({check_out}) must be after check-in date ({check_in})"
        )


def _ensure_can_manage(actor: Optional[Actor], reservation: dict[str, Any]) -> None:
    """Guests may only touch their own reservations; staff and admins may touch any."""
    if actor is None or actor.role is not ActorRole.GUEST:
        return
    if actor.guest_id is None or actor.guest_id != reservation["guest_id"]:
        raise PermissionDeniedError(
            f"User {actor.id} may not manage reservation {reservation['id']}"
        )


def _lock_reservation(
    conn: Connection, reservation_id: int
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Lock the reservation's room, then the reservation itself, and return both rows."""
    snapshot = read_reservation(conn, reservation_id)
    if snapshot is None:
        raise NotFoundError(f"Reservation {reservation_id} not found")

    room = lock_room(conn, snapshot["room_id"])
    if room is None:
        raise NotFoundError(f"Room {snapshot['room_id']} not found")

    reservation = read_reservation(conn, reservation_id, lock=True)
    if reservation is None:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation, room


def _reload(conn: Connection, reservation_id: int) -> dict[str, Any]:
    reservation = read_reservation(conn, reservation_id)
    if reservation is None:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation


def create_reservation(
    engine: Engine, payload: ReservationCreate, actor: Optional[Actor] = None
) -> ReservationRecord:
    """
    Book a new stay.

    Args:
        engine: SQLAlchemy engine
        payload: Validated booking request
        actor: Acting user, recorded as created_by

    Returns:
        ReservationRecord: The persisted reservation (status confirmed, payment pending)

    Raises:
        InvalidDateRangeError: Check-out is not after check-in
        NotFoundError: Unknown or deactivated room
        RoomUnavailableError: The dates overlap an existing reservation
        OccupancyExceededError: More guests than the room holds
        ConcurrentModificationError: Locks could not be acquired in time
    """
    with _track("create"):
        _validate_date_range(payload.check_in_date, payload.check_out_date)
        current_day = today()

        with transaction(engine) as conn:
            room = lock_room(conn, payload.room_id)
            if room is None or not room["is_active"]:
                raise NotFoundError(f"Room {payload.room_id} not found or inactive")

            if has_conflict(conn, payload.room_id, payload.check_in_date, payload.check_out_date):
                raise RoomUnavailableError(payload.room_id)

            if payload.number_of_guests > room["max_occupancy"]:
                raise OccupancyExceededError(payload.number_of_guests, room["max_occupancy"])

            quote = calculate_price(
                room["nightly_rate"], payload.check_in_date, payload.check_out_date
            )

            reservation_id = insert_reservation(
                conn,
                {
                    "room_id": payload.room_id,
                    "guest_id": payload.guest_id,
                    "created_by": actor.id if actor else None,
                    "check_in_date": payload.check_in_date,
                    "check_out_date": payload.check_out_date,
                    "number_of_guests": payload.number_of_guests,
                    "total_amount": quote.total,
                    "status": ReservationStatus.CONFIRMED,
                    "payment_status": PaymentStatus.PENDING,
                    "special_requests": payload.special_requests,
                },
            )
            reservation = _reload(conn, reservation_id)
            sync_room_status(conn, room, reservation, RoomEvent.CREATED, current_day)
            record = ReservationRecord.model_validate(reservation)

        logger.info(
            "reservation_created",
            reservation_id=record.id,
            room_id=record.room_id,
            guest_id=record.guest_id,
            nights=quote.nights,
            total_amount=str(record.total_amount),
        )

    try:
        dispatch_reservation_created(record)
    except Exception as e:
        logger.exception("reservation_notification_dispatch_failed", reservation_id=record.id, error=str(e))

    return record


def modify_reservation(
    engine: Engine,
    reservation_id: int,
    update: ReservationUpdate,
    actor: Optional[Actor] = None,
) -> ReservationRecord:
    """
    Change the dates, occupant count or special requests of a reservation.

    New dates are re-checked for conflicts (ignoring the reservation itself)
    and re-priced at the room's current rate. A checked-in stay may only change
    its check-out date.

    Args:
        engine: SQLAlchemy engine
        reservation_id: Reservation ID
        update: Closed set of modifiable fields
        actor: Acting user; guests may only modify their own reservations

    Returns:
        ReservationRecord: The reservation after the change

    Raises:
        NotFoundError: Unknown reservation
        PermissionDeniedError: Guest modifying someone else's reservation
        IllegalTransitionError: Reservation is checked-out, cancelled or no-show
        InvalidDateRangeError: Resulting check-out is not after check-in
        RoomUnavailableError: New dates overlap another reservation
        OccupancyExceededError: More guests than the room holds
    """
    with _track("modify"):
        changes = update.changes()
        current_day = today()

        with transaction(engine) as conn:
            reservation, room = _lock_reservation(conn, reservation_id)
            _ensure_can_manage(actor, reservation)

            status = ReservationStatus(reservation["status"])
            if is_terminal(status):
                raise IllegalTransitionError(
                    status.value,
                    "modified",
                    message=f"Reservation {reservation_id} is {status.value} and can no longer be modified",
                )

            new_check_in = changes.get("check_in_date", reservation["check_in_date"])
            new_check_out = changes.get("check_out_date", reservation["check_out_date"])
            dates_changed = (new_check_in, new_check_out) != (
                reservation["check_in_date"],
                reservation["check_out_date"],
            )

            values: dict[str, Any] = {}
            if dates_changed:
                if status is ReservationStatus.CHECKED_IN and new_check_in != reservation["check_in_date"]:
                    raise IllegalTransitionError(
                        status.value,
                        "modified",
                        message="The check-in date of a checked-in stay cannot change",
                    )
                _validate_date_range(new_check_in, new_check_out)
                if has_conflict(
                    conn,
                    reservation["room_id"],
                    new_check_in,
                    new_check_out,
                    exclude_reservation_id=reservation_id,
                ):
                    raise RoomUnavailableError(reservation["room_id"])
                quote = calculate_price(room["nightly_rate"], new_check_in, new_check_out)
                values.update(
                    check_in_date=new_check_in,
                    check_out_date=new_check_out,
                    total_amount=quote.total,
                )

            guests = changes.get("number_of_guests")
            if guests is not None and guests != reservation["number_of_guests"]:
                if guests > room["max_occupancy"]:
                    raise OccupancyExceededError(guests, room["max_occupancy"])
                values["number_of_guests"] = guests

            if (
                "special_requests" in changes
                and changes["special_requests"] != reservation["special_requests"]
            ):
                values["special_requests"] = changes["special_requests"]

            if not values:
                return ReservationRecord.model_validate(reservation)

            update_reservation(conn, reservation_id, values)
            updated = _reload(conn, reservation_id)

            if dates_changed and status is ReservationStatus.CONFIRMED:
                sync_room_status(
                    conn, room, updated, RoomEvent.RESCHEDULED, current_day, previous=reservation
                )
            record = ReservationRecord.model_validate(updated)

        logger.info(
            "reservation_modified",
            reservation_id=reservation_id,
            fields=sorted(values),
            total_amount=str(record.total_amount),
        )
        return record


def cancel_reservation(
    engine: Engine,
    reservation_id: int,
    reason: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> ReservationRecord:
    """
    Cancel a confirmed or checked-in reservation and release its room.

    A paid or partially paid reservation is flagged refund_due for the
    payment collaborator.

    Args:
        engine: SQLAlchemy engine
        reservation_id: Reservation ID
        reason: Cancellation reason to store
        actor: Acting user; guests may only cancel their own reservations

    Returns:
        ReservationRecord: The cancelled reservation

    Raises:
        NotFoundError: Unknown reservation
        PermissionDeniedError: Guest cancelling someone else's reservation
        IllegalTransitionError: Reservation is already terminal
    """
    with _track("cancel"):
        current_day = today()

        with transaction(engine) as conn:
            reservation, room = _lock_reservation(conn, reservation_id)
            _ensure_can_manage(actor, reservation)

            new_status = transition(
                reservation["status"],
                ReservationStatus.CANCELLED,
                reservation["check_in_date"],
                current_day,
            )

            values: dict[str, Any] = {"status": new_status, "cancellation_reason": reason}
            if reservation["payment_status"] in REFUNDABLE_PAYMENT_STATUSES:
                values["payment_status"] = PaymentStatus.REFUND_DUE

            update_reservation(conn, reservation_id, values)
            updated = _reload(conn, reservation_id)
            sync_room_status(
                conn, room, updated, RoomEvent.CANCELLED, current_day, previous=reservation
            )
            record = ReservationRecord.model_validate(updated)

        logger.info(
            "reservation_cancelled",
            reservation_id=reservation_id,
            previous_status=ReservationStatus(reservation["status"]).value,
            refund_due=record.payment_status is PaymentStatus.REFUND_DUE,
        )
        return record


def _apply_stay_event(
    engine: Engine,
    reservation_id: int,
    requested: ReservationStatus,
    event: RoomEvent,
    timestamp_column: Optional[str],
    actor: Optional[Actor],
) -> ReservationRecord:
    current_day = today()

    with transaction(engine) as conn:
        reservation, room = _lock_reservation(conn, reservation_id)

        new_status = transition(
            reservation["status"], requested, reservation["check_in_date"], current_day
        )

        values: dict[str, Any] = {"status": new_status}
        if timestamp_column:
            values[timestamp_column] = utc_now()

        update_reservation(conn, reservation_id, values)
        updated = _reload(conn, reservation_id)
        sync_room_status(conn, room, updated, event, current_day, previous=reservation)
        record = ReservationRecord.model_validate(updated)

    logger.info(
        "reservation_status_changed",
        reservation_id=reservation_id,
        room_id=record.room_id,
        status=new_status.value,
        actor_id=actor.id if actor else None,
    )
    return record


def check_in(engine: Engine, reservation_id: int, actor: Optional[Actor] = None) -> ReservationRecord:
    """
    Check a guest in: confirmed -> checked-in, room -> occupied.

    Raises:
        NotFoundError: Unknown reservation
        PrematureCheckInError: Before the stay's check-in date
        IllegalTransitionError: Reservation is not confirmed
    """
    with _track("check_in"):
        return _apply_stay_event(
            engine,
            reservation_id,
            ReservationStatus.CHECKED_IN,
            RoomEvent.CHECKED_IN,
            "actual_check_in",
            actor,
        )


def check_out(engine: Engine, reservation_id: int, actor: Optional[Actor] = None) -> ReservationRecord:
    """
    Check a guest out: checked-in -> checked-out, room -> available.

    Raises:
        NotFoundError: Unknown reservation
        IllegalTransitionError: Reservation is not checked in
    """
    with _track("check_out"):
        return _apply_stay_event(
            engine,
            reservation_id,
            ReservationStatus.CHECKED_OUT,
            RoomEvent.CHECKED_OUT,
            "actual_check_out",
            actor,
        )


def mark_no_show(engine: Engine, reservation_id: int, actor: Optional[Actor] = None) -> ReservationRecord:
    """
    Record that the guest never arrived: confirmed -> no-show.

    Only valid once the check-in date has passed. Never fired automatically;
    a night-audit policy or staff member decides when to call it.

    Raises:
        NotFoundError: Unknown reservation
        IllegalTransitionError: Not confirmed, or the check-in date has not passed
    """
    with _track("no_show"):
        return _apply_stay_event(
            engine,
            reservation_id,
            ReservationStatus.NO_SHOW,
            RoomEvent.NO_SHOW,
            None,
            actor,
        )


def update_payment_status(
    engine: Engine, reservation_id: int, payment_status: PaymentStatus
) -> ReservationRecord:
    """
    Record the payment collaborator's coarse payment status.

    Allowed in every reservation status, terminal ones included.

    Raises:
        NotFoundError: Unknown reservation
    """
    with _track("payment_status"):
        with transaction(engine) as conn:
            reservation = read_reservation(conn, reservation_id, lock=True)
            if reservation is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")

            write_payment_status(conn, reservation_id, PaymentStatus(payment_status))
            record = ReservationRecord.model_validate(_reload(conn, reservation_id))

        logger.info(
            "reservation_payment_status_updated",
            reservation_id=reservation_id,
            payment_status=record.payment_status.value,
        )
        return record


def get_reservation(engine: Engine, reservation_id: int) -> ReservationRecord:
    """
    Fetch a reservation.

    Raises:
        NotFoundError: Unknown reservation
    """
    with engine.connect() as conn:
        reservation = read_reservation(conn, reservation_id)
    if reservation is None:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return ReservationRecord.model_validate(reservation)
