"""
Seat availability resolution and the booking-or-waitlist write path.

``resolve_seat_statuses`` is a pure function over rows already fetched from
the store. ``check_availability`` wires it to the database for the seat
picker, and ``submit_booking`` re-runs it for a single, row-locked seat
inside the write transaction before inserting a booking or a waitlist entry.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import BookingValidationError, SeatNotFoundError, SeatRaceError
from app.models.booking import Booking
from app.models.waitlist import WaitlistEntry
from app.utils.booking_store import (
    ActiveBooking,
    as_utc,
    insert_booking,
    insert_waitlist_entry,
    list_active_bookings,
    list_seats,
    list_waitlist_counts,
    lock_seat,
    store_errors,
)
from app.utils.pricing import membership_months, monthly_rate, total_cost
from app.utils.slots import Plan, Slot, bookings_conflict, intervals_overlap, plan_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatStatus:
    seat_id: UUID
    seat_number: int
    available: bool
    waitlisted: bool
    occupant: Optional[str] = None


@dataclass(frozen=True)
class BookingRequest:
    start: datetime
    end: datetime
    plan: Plan
    seat_id: Optional[UUID] = None
    user_id: Optional[UUID] = None


@dataclass(frozen=True)
class BookingOutcome:
    # "booking" or "waitlist"
    kind: str
    record: Union[Booking, WaitlistEntry]
    seat_number: int


def build_request(
    start: Optional[datetime],
    end: Optional[datetime],
    category: Optional[str],
    slot: Optional[str] = None,
    seat_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
) -> BookingRequest:
    """Validate raw wizard input. Raises ``BookingValidationError`` without touching the store."""
    if start is None or end is None:
        raise BookingValidationError("Please select both dates")
    start, end = as_utc(start), as_utc(end)
    if end < start:
        raise BookingValidationError("End date must not be before the start date")
    if not category:
        raise BookingValidationError("Please select a booking type")
    plan = plan_for(category, slot)
    if plan.pool is None:
        raise BookingValidationError(
            f"{plan.category.value.capitalize()} memberships are not assigned a specific seat"
        )
    return BookingRequest(start=start, end=end, plan=plan, seat_id=seat_id, user_id=user_id)


def resolve_seat_statuses(
    request: BookingRequest,
    seats: Iterable,
    bookings: Iterable[ActiveBooking],
    waitlist_counts: Dict[UUID, int],
) -> List[SeatStatus]:
    """
    Classify every seat of the request's pool.

    A seat is unavailable when any booking on it overlaps the requested window
    and collides under the slot rules; the first such booking names the
    occupant. ``waitlisted`` only reflects whether the seat has waitlist
    entries at all, so a free seat can be waitlisted too.
    """
    pool = request.plan.pool
    by_seat = defaultdict(list)
    for booking in bookings:
        by_seat[booking.seat_id].append(booking)

    statuses = []
    for seat in sorted(seats, key=lambda s: s.seat_number):
        if seat.seat_number not in pool:
            continue
        occupant = None
        available = True
        for booking in by_seat.get(seat.id, ()):
            if not intervals_overlap(booking.start_time, booking.end_time, request.start, request.end):
                continue
            if bookings_conflict(request.plan, booking.duration_type, booking.slot):
                available = False
                occupant = booking.occupant
                break
        statuses.append(SeatStatus(
            seat_id=seat.id,
            seat_number=seat.seat_number,
            available=available,
            waitlisted=waitlist_counts.get(seat.id, 0) > 0,
            occupant=occupant,
        ))
    return statuses


def check_availability(db: Session, request: BookingRequest) -> List[SeatStatus]:
    """Fetch the pool, its overlapping active bookings and waitlist counts, then resolve."""
    with store_errors(db, "checking seat availability"):
        seats = list_seats(db, request.plan.pool)
        seat_ids = [s.id for s in seats]
        bookings = list_active_bookings(db, seat_ids, request.start, request.end)
        counts = list_waitlist_counts(db, seat_ids)
    return resolve_seat_statuses(request, seats, bookings, counts)


def _describe(request: BookingRequest, months: int) -> str:
    plan = request.plan
    shift = f" {plan.slot.value}" if plan.slot and plan.slot is not Slot.full else ""
    return f"{plan.duration_type.value}{shift} seat booking for {months} month{'s' if months > 1 else ''}"


def submit_booking(
    db: Session, request: BookingRequest, expect_available: Optional[bool] = None
) -> BookingOutcome:
    """
    Book the requested seat, or waitlist the member when it is taken.

    The seat row is locked and its status re-resolved inside the same
    transaction as the insert. When the caller was shown the seat as free
    (``expect_available=True``) but it has been taken since, nothing is
    written and ``SeatRaceError`` is raised.
    """
    if request.seat_id is None or request.user_id is None:
        raise BookingValidationError("Please select a seat")

    months = membership_months(request.start, request.end)
    cost = total_cost(request.plan.rate_key, months)

    with store_errors(db, "submitting a booking"):
        seat = lock_seat(db, request.seat_id)
        if seat is None:
            raise SeatNotFoundError("Seat not found")
        if seat.seat_number not in request.plan.pool:
            raise BookingValidationError(
                f"Seat {seat.seat_number} cannot be booked for {request.plan.duration_type.value} bookings"
            )

        bookings = list_active_bookings(db, [seat.id], request.start, request.end)
        counts = list_waitlist_counts(db, [seat.id])
        (status,) = resolve_seat_statuses(request, [seat], bookings, counts)

        if status.available:
            booking = insert_booking(
                db,
                seat_id=seat.id,
                user_id=request.user_id,
                category=request.plan.category.value,
                duration_type=request.plan.duration_type.value,
                slot=request.plan.slot.value if request.plan.slot else None,
                start_time=request.start,
                end_time=request.end,
                membership_start_date=request.start.date(),
                membership_end_date=request.end.date(),
                status="pending",
                payment_status="pending",
                duration_months=months,
                monthly_cost=monthly_rate(request.plan.rate_key),
                description=_describe(request, months),
            )
            db.commit()
            logger.info(
                "Booking %s requested: seat %d, %s, %d month(s), total %s",
                booking.id, seat.seat_number, request.plan.duration_type.value, months, cost,
            )
            return BookingOutcome(kind="booking", record=booking, seat_number=seat.seat_number)

        if expect_available:
            db.rollback()
            raise SeatRaceError()

        entry = insert_waitlist_entry(
            db,
            seat_id=seat.id,
            user_id=request.user_id,
            slot=(request.plan.slot or Slot.full).value,
        )
        db.commit()
        logger.info("User %s waitlisted for seat %d (%s)", request.user_id, seat.seat_number, entry.slot)
        return BookingOutcome(kind="waitlist", record=entry, seat_number=seat.seat_number)
