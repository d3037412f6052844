from __future__ import annotations

from typing import Literal, Optional, List
from pydantic import BaseModel, Field, UUID4, field_validator
from decimal import Decimal
from datetime import date, datetime


# Booking: Create (POST /bookings), hourly / 24hr seat bookings
class BookingCreate(BaseModel):
    seat_id: UUID4
    category: Literal["6hr", "12hr", "24hr"]
    slot: Optional[str] = None
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None
    # Availability the wizard showed for this seat; True turns a lost race into a 409
    expect_available: Optional[bool] = None

    @field_validator("slot", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


# Membership: Create (POST /memberships)
class MembershipCreate(BaseModel):
    category: Literal["fixed", "floating", "limited"]
    duration_months: int = Field(1, ge=1, le=36)
    seat_number: Optional[int] = None
    shift: Optional[str] = None


class Booking(BaseModel):
    id: UUID4
    seat_id: Optional[UUID4] = None
    seat_number: Optional[int] = None
    user_id: UUID4
    category: str
    duration_type: str
    slot: Optional[str] = None
    start_time: datetime
    end_time: datetime
    membership_start_date: Optional[date] = None
    membership_end_date: Optional[date] = None
    status: str
    payment_status: str
    monthly_cost: Decimal
    duration_months: int
    total_cost: Decimal
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class WaitlistEntry(BaseModel):
    id: UUID4
    seat_id: UUID4
    seat_number: Optional[int] = None
    user_id: UUID4
    user_name: Optional[str] = None
    slot: str
    created_at: Optional[datetime] = None


# Booking: outcome of POST /bookings: either a booking or a waitlist entry
class BookingOutcome(BaseModel):
    outcome: Literal["booking", "waitlist"]
    message: str
    booking: Optional[Booking] = None
    waitlist_entry: Optional[WaitlistEntry] = None


class CostQuote(BaseModel):
    category: str
    months: int
    monthly_rate: Decimal
    total: Decimal


# Booking: Admin view (GET /admin/bookings, includes user info)
class AdminBooking(Booking):
    user: Optional[UserSummary] = None


# Admin: independent status / payment transitions (PATCH /admin/bookings/{id})
class BookingUpdate(BaseModel):
    status: Optional[Literal["pending", "confirmed"]] = None
    payment_status: Optional[Literal["pending", "paid"]] = None


# Admin: record a payment (POST /admin/bookings/{id}/payments)
class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    admin_notes: Optional[str] = None


# Admin: release a seat by truncating the booking (POST /admin/bookings/{id}/release)
class ReleaseRequest(BaseModel):
    end_date: Optional[date] = None


# Admin: move a member to another seat (POST /admin/bookings/{id}/move)
class MoveRequest(BaseModel):
    new_seat_id: UUID4
    old_end_date: date
    new_start_date: date


class MoveResponse(BaseModel):
    released: Booking
    moved_to: Booking


class Transaction(BaseModel):
    id: UUID4
    booking_id: UUID4
    user_id: UUID4
    amount: Decimal
    status: str
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Admin: users with their active paid bookings (GET /admin/users)
class MemberOverview(BaseModel):
    user: UserSummary
    active_bookings: List[Booking] = []


# Import at the bottom to avoid circular imports
from app.schemas.user import UserSummary  # noqa: E402

AdminBooking.model_rebuild()
MemberOverview.model_rebuild()
