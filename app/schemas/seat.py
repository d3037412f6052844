from typing import Annotated, List, Optional
from pydantic import BaseModel, Field, UUID4, model_validator
from datetime import date, datetime

SeatNumber = Annotated[int, Field(ge=1, le=50)]


# Seat: admin inventory
class SeatCreate(BaseModel):
    seat_number: SeatNumber


class Seat(SeatCreate):
    id: UUID4
    pool: str  # full_day (1-13) or hourly (14-50)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Bulk seat creation (POST /admin/seats/bulk): inclusive number range
class SeatBulkCreate(BaseModel):
    first_number: SeatNumber
    last_number: SeatNumber

    @model_validator(mode="after")
    def check_range(self):
        if self.last_number < self.first_number:
            raise ValueError("last_number must not be below first_number")
        return self


class SeatBulkCreateResponse(BaseModel):
    created_count: int
    skipped_numbers: List[int]


# --- Availability (seat picker step of the booking wizard) ---

class SeatAvailabilityStatus(BaseModel):
    seat_id: UUID4
    seat_number: int
    available: bool
    waitlisted: bool
    occupant: Optional[str] = None


class SeatAvailabilityResponse(BaseModel):
    category: str
    slot: Optional[str] = None
    from_time: datetime
    to_time: datetime
    seats: List[SeatAvailabilityStatus]


# --- Fixed seat check (membership wizard) ---

class FixedSeatAvailability(BaseModel):
    seat_number: int
    is_available: bool
    next_available_date: date
    conflicting_booking_end: Optional[date] = None


# --- Seat layout (booked / available today) ---

class SeatLayoutItem(BaseModel):
    seat_number: int
    status: str  # booked, available
    booked_until: Optional[date] = None


class SeatLayoutResponse(BaseModel):
    as_of: date
    seats: List[SeatLayoutItem]
