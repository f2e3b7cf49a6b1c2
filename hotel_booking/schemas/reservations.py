from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from hotel_booking.models.reservations import PaymentStatus, ReservationStatus
from hotel_booking.models.rooms import RoomStatus


class ActorRole(str, Enum):
    GUEST = "guest"
    STAFF = "staff"
    ADMIN = "admin"


class Actor(BaseModel):
    """
    The authenticated user on whose behalf an operation runs.

    Supplied by the identity collaborator and trusted as-is. Guests may only
    modify or cancel their own reservations; staff and admins may act on any.
    """

    id: int = Field(..., description="Authenticated user ID")
    role: ActorRole = Field(..., description="Role granted by the identity provider")
    guest_id: Optional[int] = Field(None, description="Guest profile ID when role is guest")


class ReservationCreate(BaseModel):
    """
    Schema for booking a new stay. The check-out date is exclusive.
    """

    model_config = ConfigDict(extra="forbid")

    guest_id: int = Field(..., description="Guest the stay is booked for")
    room_id: int = Field(..., description="Room to book")
    check_in_date: date = Field(..., description="First night of the stay")
    check_out_date: date = Field(..., description="Departure day (not occupied)")
    number_of_guests: int = Field(..., gt=0, description="Occupant count")
    special_requests: Optional[str] = Field(None, description="Free-text guest requests")


class ReservationUpdate(BaseModel):
    """
    Schema for modifying a reservation. All fields are optional; unknown
    fields are rejected. Status, price and payment fields are not modifiable
    here; they change only through their own operations.
    """

    model_config = ConfigDict(extra="forbid")

    check_in_date: Optional[date] = Field(None, description="New check-in date")
    check_out_date: Optional[date] = Field(None, description="New check-out date")
    number_of_guests: Optional[int] = Field(None, gt=0, description="New occupant count")
    special_requests: Optional[str] = Field(None, description="Replacement special requests")

    # Fields an explicit None clears; None on any other field means "unchanged"
    CLEARABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"special_requests"})

    def changes(self) -> dict[str, object]:
        """Fields the caller actually supplied."""
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k in self.CLEARABLE_FIELDS
        }


class ReservationRecord(BaseModel):
    """
    A persisted reservation as returned by booking operations.
    """

    id: int
    room_id: int
    guest_id: int
    created_by: Optional[int] = None
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    total_amount: Decimal
    status: ReservationStatus
    payment_status: PaymentStatus
    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days


class AvailableRoom(BaseModel):
    """
    A room that can be booked for a requested date range.
    """

    room_id: int
    room_number: str
    nightly_rate: Decimal
    max_occupancy: int
    status: RoomStatus
