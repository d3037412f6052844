from uuid import UUID
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_user
from app.core.errors import BookingValidationError
from app.models.user import User
from app.models.booking import Booking
from app.models.waitlist import WaitlistEntry
from app.schemas.common import ErrorResponse
from app.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingOutcome,
    CostQuote,
    WaitlistEntry as WaitlistEntrySchema,
)
from app.utils.availability import build_request, submit_booking
from app.utils.pricing import membership_months, monthly_rate, total_cost

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def serialize_booking(booking: Booking) -> BookingSchema:
    """Convert a Booking ORM object to its schema representation."""
    return BookingSchema(
        id=booking.id,
        seat_id=booking.seat_id,
        seat_number=booking.seat.seat_number if booking.seat else None,
        user_id=booking.user_id,
        category=booking.category,
        duration_type=booking.duration_type,
        slot=booking.slot,
        start_time=booking.start_time,
        end_time=booking.end_time,
        membership_start_date=booking.membership_start_date,
        membership_end_date=booking.membership_end_date,
        status=booking.status,
        payment_status=booking.payment_status,
        monthly_cost=booking.monthly_cost,
        duration_months=booking.duration_months,
        total_cost=booking.monthly_cost * booking.duration_months,
        description=booking.description,
        created_at=booking.created_at,
    )


def serialize_waitlist_entry(entry: WaitlistEntry) -> WaitlistEntrySchema:
    return WaitlistEntrySchema(
        id=entry.id,
        seat_id=entry.seat_id,
        seat_number=entry.seat.seat_number if entry.seat else None,
        user_id=entry.user_id,
        user_name=entry.user.full_name if entry.user else None,
        slot=entry.slot,
        created_at=entry.created_at,
    )


# ---------------------------------------------------------------------------
# GET /bookings/quote: cost for a category and date range
# ---------------------------------------------------------------------------


@router.get("/quote", response_model=CostQuote)
def quote(
    category: str = Query(..., description="6hr | 12hr | 24hr | fixed | floating | limited"),
    from_date: date = Query(...),
    to_date: date = Query(...),
):
    """Whole-month price: months = month difference + 1, times the monthly rate."""
    if to_date < from_date:
        raise BookingValidationError("End date must not be before the start date")
    months = membership_months(from_date, to_date)
    return CostQuote(
        category=category,
        months=months,
        monthly_rate=monthly_rate(category),
        total=total_cost(category, months),
    )


# ---------------------------------------------------------------------------
# POST /bookings: book a seat or join its waitlist
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=BookingOutcome,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Submit the seat chosen in the booking wizard.

    - Seat free for the window and slot → a **pending** booking awaiting admin
      approval and payment.
    - Seat taken → a waitlist entry instead.
    - Send `expect_available=true` when the wizard showed the seat as free; if
      someone else took it in the meantime the request fails with 409 and
      nothing is written.
    """
    request = build_request(
        data.from_time,
        data.to_time,
        data.category,
        data.slot,
        seat_id=data.seat_id,
        user_id=current_user.id,
    )
    outcome = submit_booking(db, request, expect_available=data.expect_available)

    if outcome.kind == "booking":
        return BookingOutcome(
            outcome="booking",
            message="Your booking request has been submitted for approval.",
            booking=serialize_booking(outcome.record),
        )
    return BookingOutcome(
        outcome="waitlist",
        message="You have been added to the waitlist.",
        waitlist_entry=serialize_waitlist_entry(outcome.record),
    )


# ---------------------------------------------------------------------------
# GET /bookings/{id}: single booking detail
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return a single booking. Only the owning user can access it."""
    booking = (
        db.query(Booking)
        .options(joinedload(Booking.seat))
        .filter(Booking.id == booking_id, Booking.user_id == current_user.id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return serialize_booking(booking)
