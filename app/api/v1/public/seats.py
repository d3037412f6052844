from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.booking import Booking
from app.models.seat import Seat
from app.schemas.seat import (
    FixedSeatAvailability,
    SeatAvailabilityResponse,
    SeatAvailabilityStatus,
    SeatLayoutItem,
    SeatLayoutResponse,
)
from app.utils.availability import build_request, check_availability
from app.utils.booking_store import store_errors
from app.utils.memberships import check_fixed_seat

router = APIRouter(prefix="/seats", tags=["Seats"])


# ---------------------------------------------------------------------------
# Public: availability for the seat picker
# ---------------------------------------------------------------------------


@router.get("/availability", response_model=SeatAvailabilityResponse)
def get_seat_availability(
    from_time: Optional[datetime] = Query(None, description="Window start (ISO 8601)"),
    to_time: Optional[datetime] = Query(None, description="Window end, exclusive (ISO 8601)"),
    category: str = Query(..., description="24hr | 12hr | 6hr"),
    slot: Optional[str] = Query(None, description="day/night for 12hr; morning/afternoon/evening for 6hr"),
    db: Session = Depends(get_db),
):
    """
    Status of every seat in the category's pool for the requested window.

    24hr requests look at seats 1-13 and ignore `slot`; 12hr and 6hr requests
    look at seats 14-50 and require one. A seat can be both available and
    waitlisted. Does not require authentication.
    """
    request = build_request(from_time, to_time, category, slot)
    statuses = check_availability(db, request)
    return SeatAvailabilityResponse(
        category=request.plan.duration_type.value,
        slot=request.plan.slot.value if request.plan.slot else None,
        from_time=request.start,
        to_time=request.end,
        seats=[
            SeatAvailabilityStatus(
                seat_id=s.seat_id,
                seat_number=s.seat_number,
                available=s.available,
                waitlisted=s.waitlisted,
                occupant=s.occupant,
            )
            for s in statuses
        ],
    )


# ---------------------------------------------------------------------------
# Public: seat layout (booked / available right now)
# ---------------------------------------------------------------------------


@router.get("/layout", response_model=SeatLayoutResponse)
def get_seat_layout(db: Session = Depends(get_db)):
    """
    Every seat marked `booked` when a confirmed, paid booking holds it now,
    otherwise `available`.
    """
    now = datetime.now(timezone.utc)
    with store_errors(db, "loading the seat layout"):
        seats = db.query(Seat).order_by(Seat.seat_number).all()
        holding = (
            db.query(Booking.seat_id, Booking.membership_end_date)
            .filter(
                Booking.seat_id.isnot(None),
                Booking.status == "confirmed",
                Booking.payment_status == "paid",
                Booking.start_time <= now,
                Booking.end_time > now,
            )
            .all()
        )

    booked_until = {}
    for seat_id, end_date in holding:
        current = booked_until.get(seat_id)
        if current is None or (end_date and end_date > current):
            booked_until[seat_id] = end_date

    return SeatLayoutResponse(
        as_of=now.date(),
        seats=[
            SeatLayoutItem(
                seat_number=seat.seat_number,
                status="booked" if seat.id in booked_until else "available",
                booked_until=booked_until.get(seat.id),
            )
            for seat in seats
        ],
    )


# ---------------------------------------------------------------------------
# Public: fixed seat check (membership wizard)
# ---------------------------------------------------------------------------


@router.get("/{seat_number}/fixed-availability", response_model=FixedSeatAvailability)
def get_fixed_seat_availability(
    seat_number: int,
    months: int = Query(1, ge=1, le=36),
    start_date: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
):
    """Whether a fixed seat is free for the membership length, and when it frees up if not."""
    start = start_date or datetime.now(timezone.utc).date()
    result = check_fixed_seat(db, seat_number, start, months)
    return FixedSeatAvailability(
        seat_number=seat_number,
        is_available=result.is_available,
        next_available_date=result.next_available_date,
        conflicting_booking_end=result.conflicting_booking_end,
    )
