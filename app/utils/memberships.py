import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import BookingValidationError, SeatNotFoundError, SeatRaceError
from app.models.booking import Booking
from app.models.seat import Seat
from app.utils.booking_store import as_utc, insert_booking, list_active_bookings, store_errors
from app.utils.pricing import add_months, monthly_rate
from app.utils.slots import Fixed, Floating, Limited, plan_for

logger = logging.getLogger(__name__)

_LABELS = {
    Fixed: "Fixed",
    Floating: "Floating",
    Limited: "Limited Hours",
}


@dataclass(frozen=True)
class FixedSeatAvailability:
    is_available: bool
    next_available_date: date
    conflicting_booking_end: Optional[date] = None


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _first_free_day(end: datetime) -> date:
    """Bookings are half-open, so a booking ending at midnight frees that same day."""
    end = as_utc(end)
    if end.time() == time.min:
        return end.date()
    return end.date() + timedelta(days=1)


def _fixed_seat(db: Session, seat_number: int, lock: bool = False) -> Seat:
    query = db.query(Seat).filter(Seat.seat_number == seat_number)
    if lock:
        query = query.with_for_update()
    seat = query.first()
    if seat is None:
        raise SeatNotFoundError(f"Seat {seat_number} not found")
    if seat.seat_number not in Fixed.pool:
        raise BookingValidationError(f"Seat {seat_number} is not a fixed seat")
    return seat


def check_fixed_seat(db: Session, seat_number: int, start: date, months: int) -> FixedSeatAvailability:
    """
    Whether a fixed seat is free for ``months`` starting at ``start``.

    When it isn't, ``next_available_date`` is the first day after the last
    overlapping booking on the seat ends.
    """
    if months < 1:
        raise BookingValidationError("Duration must be at least one month")
    end = add_months(start, months)
    with store_errors(db, "checking fixed seat availability"):
        seat = _fixed_seat(db, seat_number)
        conflicts = list_active_bookings(db, [seat.id], _midnight(start), _midnight(end))
    if not conflicts:
        return FixedSeatAvailability(is_available=True, next_available_date=start)
    last_end = max(b.end_time for b in conflicts)
    return FixedSeatAvailability(
        is_available=False,
        next_available_date=_first_free_day(last_end),
        conflicting_booking_end=last_end.date(),
    )


def create_membership(
    db: Session,
    user_id: UUID,
    category: str,
    months: int,
    seat_number: Optional[int] = None,
    shift: Optional[str] = None,
    today: Optional[date] = None,
) -> Booking:
    """
    Request a fixed, floating or limited-hours membership.

    Fixed memberships need a seat from the full-day pool and start on the
    seat's next available date; floating and limited ones start today and
    carry no seat. Limited memberships need a shift.
    """
    plan = plan_for(category, shift)
    if type(plan) not in _LABELS:
        raise BookingValidationError(f"'{category}' is not a membership category")
    if months < 1:
        raise BookingValidationError("Duration must be at least one month")
    today = today or datetime.now(timezone.utc).date()

    with store_errors(db, "creating a membership"):
        seat = None
        start = today
        if isinstance(plan, Fixed):
            if seat_number is None:
                raise BookingValidationError("Please select a seat")
            availability = check_fixed_seat(db, seat_number, today, months)
            start = availability.next_available_date
            seat = _fixed_seat(db, seat_number, lock=True)
            # Re-check under the row lock for the window we are about to take
            end = add_months(start, months)
            if list_active_bookings(db, [seat.id], _midnight(start), _midnight(end)):
                db.rollback()
                raise SeatRaceError("Selected seat is not available for the chosen duration")
        end = add_months(start, months)

        booking = insert_booking(
            db,
            seat_id=seat.id if seat else None,
            user_id=user_id,
            category=plan.category.value,
            duration_type=plan.duration_type.value,
            slot=plan.slot.value if plan.slot else None,
            start_time=_midnight(start),
            end_time=_midnight(end),
            membership_start_date=start,
            membership_end_date=end,
            status="pending",
            payment_status="pending",
            duration_months=months,
            monthly_cost=monthly_rate(plan.rate_key),
            description=f"{_LABELS[type(plan)]} seat membership for {months} month{'s' if months > 1 else ''}",
        )
        db.commit()
    logger.info("Membership %s requested: %s for %d month(s)", booking.id, plan.category.value, months)
    return booking
