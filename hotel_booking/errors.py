"""
Booking engine error taxonomy.

Every rejected operation raises one of these. Validation errors are raised
before anything is written; transaction-level failures (lock timeouts,
serialization failures, exclusion violations) are translated into
ConcurrentModificationError / RoomUnavailableError by the transaction scope
in hotel_booking.db.engine.

Callers can use ``retryable`` to decide whether the same request may succeed
if submitted again.
"""

from __future__ import annotations


class BookingError(Exception):
    """Base class for every error raised by the booking engine."""

    retryable = False


class InvalidDateRangeError(BookingError):
    """Check-out is not after check-in."""


class RoomUnavailableError(BookingError):
    """The room already has an overlapping, non-cancelled reservation."""

    retryable = True

    def __init__(self, room_id: int | None = None, message: str | None = None) -> None:
        self.room_id = room_id
        target = f"Room {room_id}" if room_id is not None else "The room"
        super().__init__(message or f"{target} is already reserved for the selected dates")


class OccupancyExceededError(BookingError):
    """More occupants than the room can hold."""

    def __init__(self, requested: int, max_occupancy: int) -> None:
        self.requested = requested
        self.max_occupancy = max_occupancy
        super().__init__(
            f"Room capacity exceeded: requested {requested}, max allowed {max_occupancy}"
        )


class IllegalTransitionError(BookingError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, current: str, requested: str, message: str | None = None) -> None:
        self.current = current
        self.requested = requested
        super().__init__(message or f"Cannot move reservation from '{current}' to '{requested}'")


class PrematureCheckInError(BookingError):
    """Check-in requested before the stay's check-in date."""


class NotFoundError(BookingError):
    """Unknown reservation or room."""


class PermissionDeniedError(BookingError):
    """The acting user may not touch this reservation."""


class ConcurrentModificationError(BookingError):
    """A lock could not be acquired in time, or the store aborted the transaction."""

    retryable = True
