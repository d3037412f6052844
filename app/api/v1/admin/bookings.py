import logging
from typing import List, Optional
from uuid import UUID
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.api.v1.public.bookings import serialize_booking, serialize_waitlist_entry
from app.core.errors import BookingValidationError, SeatNotFoundError, SeatRaceError
from app.models.user import User
from app.models.booking import Booking
from app.models.seat import Seat
from app.models.transaction import Transaction
from app.models.waitlist import WaitlistEntry
from app.schemas.booking import (
    AdminBooking,
    BookingUpdate,
    MoveRequest,
    MoveResponse,
    PaymentCreate,
    ReleaseRequest,
    Transaction as TransactionSchema,
    WaitlistEntry as WaitlistEntrySchema,
)
from app.schemas.user import UserSummary
from app.schemas.common import PaginatedResponse
from app.utils.availability import BookingRequest, resolve_seat_statuses
from app.utils.booking_store import (
    as_utc,
    insert_booking,
    list_active_bookings,
    list_waitlist_counts,
    lock_seat,
    store_errors,
)
from app.utils.slots import DurationType, plan_for, pool_of

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])
waitlist_router = APIRouter(prefix="/admin/waitlist", tags=["Admin - Waitlist"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_admin_booking(booking: Booking) -> AdminBooking:
    user_summary = None
    if booking.user:
        user_summary = UserSummary(
            id=booking.user.id,
            full_name=booking.user.full_name,
            email=booking.user.email,
        )
    return AdminBooking(**serialize_booking(booking).model_dump(), user=user_summary)


def _get_booking(db: Session, booking_id: UUID) -> Booking:
    booking = (
        db.query(Booking)
        .options(joinedload(Booking.user), joinedload(Booking.seat))
        .filter(Booking.id == booking_id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _truncate(booking: Booking, last_day: date) -> None:
    """End a booking after ``last_day``; the seat is free from the following midnight."""
    start_day = booking.membership_start_date or as_utc(booking.start_time).date()
    if last_day < start_day:
        raise BookingValidationError("End date cannot be before the booking starts")
    current_end = booking.membership_end_date or as_utc(booking.end_time).date()
    if last_day > current_end:
        raise BookingValidationError("End date can only be moved earlier")
    booking.membership_end_date = last_day
    booking.end_time = min(as_utc(booking.end_time), _day_start(last_day + timedelta(days=1)))


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[AdminBooking])
def list_all_bookings(
    status: Optional[str] = Query(None, description="Filter by booking status (pending, confirmed)"),
    payment_status: Optional[str] = Query(None, description="Filter by payment status (pending, paid)"),
    category: Optional[str] = Query(None, description="fixed | floating | limited"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Return every booking, newest first, with the member and seat number."""
    query = db.query(Booking).options(
        joinedload(Booking.user),
        joinedload(Booking.seat),
    )
    if status:
        query = query.filter(Booking.status == status)
    if payment_status:
        query = query.filter(Booking.payment_status == payment_status)
    if category:
        query = query.filter(Booking.category == category)

    total = query.count()
    bookings = (
        query.order_by(Booking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[_serialize_admin_booking(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# Approval / payment
# ---------------------------------------------------------------------------


@router.patch("/{booking_id}", response_model=AdminBooking)
def update_booking(
    booking_id: UUID,
    data: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Set `status` and/or `payment_status`. The two move independently."""
    booking = _get_booking(db, booking_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    for field, value in changes.items():
        setattr(booking, field, value)
    with store_errors(db, "updating a booking"):
        db.commit()
    db.refresh(booking)
    logger.info("Booking %s updated by %s: %s", booking.id, current_user.id, changes)
    return _serialize_admin_booking(booking)


@router.post(
    "/{booking_id}/payments",
    response_model=TransactionSchema,
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    booking_id: UUID,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Mark the booking paid and record the amount received as a completed transaction."""
    booking = _get_booking(db, booking_id)
    booking.payment_status = "paid"
    txn = Transaction(
        booking_id=booking.id,
        user_id=booking.user_id,
        amount=data.amount,
        status="completed",
        admin_notes=data.admin_notes,
    )
    db.add(txn)
    with store_errors(db, "recording a payment"):
        db.commit()
    db.refresh(txn)
    logger.info("Payment of %s recorded for booking %s", data.amount, booking.id)
    return txn


@router.get("/{booking_id}/transactions", response_model=List[TransactionSchema])
def list_booking_transactions(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _get_booking(db, booking_id)
    return (
        db.query(Transaction)
        .filter(Transaction.booking_id == booking_id)
        .order_by(Transaction.created_at.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Release / move
# ---------------------------------------------------------------------------


@router.post("/{booking_id}/release", response_model=AdminBooking)
def release_seat(
    booking_id: UUID,
    data: ReleaseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Release a seat by ending the booking early. The booking and its
    transactions are kept; `end_date` (default: yesterday) becomes its last day.
    """
    booking = _get_booking(db, booking_id)
    last_day = data.end_date or (datetime.now(timezone.utc).date() - timedelta(days=1))
    _truncate(booking, last_day)
    with store_errors(db, "releasing a seat"):
        db.commit()
    db.refresh(booking)
    logger.info("Booking %s released; last day %s", booking.id, last_day)
    return _serialize_admin_booking(booking)


@router.post("/{booking_id}/move", response_model=MoveResponse)
def move_member(
    booking_id: UUID,
    data: MoveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Move a member to another seat: the old booking ends on `old_end_date`, and a
    confirmed, paid booking on the new seat runs from `new_start_date` until the
    old booking's original end. Two zero-amount transactions record the move.
    """
    booking = _get_booking(db, booking_id)
    if not booking.seat:
        raise BookingValidationError("Only seat bookings can be moved")
    if data.new_seat_id == booking.seat_id:
        raise BookingValidationError("Choose a different seat")

    original_end = as_utc(booking.end_time)
    original_end_date = booking.membership_end_date or original_end.date()
    new_start = _day_start(data.new_start_date)
    if new_start >= original_end:
        raise BookingValidationError("New seat must start before the membership ends")

    kind = booking.category if booking.duration_type == DurationType.membership.value else booking.duration_type
    plan = plan_for(kind, booking.slot)

    with store_errors(db, "moving a member"):
        new_seat = lock_seat(db, data.new_seat_id)
        if new_seat is None:
            raise SeatNotFoundError("Seat not found")
        if pool_of(new_seat.seat_number) != pool_of(booking.seat.seat_number):
            raise BookingValidationError(
                f"Seat {new_seat.seat_number} is in a different pool than seat {booking.seat.seat_number}"
            )

        request = BookingRequest(start=new_start, end=original_end, plan=plan)
        (seat_status,) = resolve_seat_statuses(
            request,
            [new_seat],
            list_active_bookings(db, [new_seat.id], new_start, original_end),
            list_waitlist_counts(db, [new_seat.id]),
        )
        if not seat_status.available:
            db.rollback()
            raise SeatRaceError(f"Seat {new_seat.seat_number} is taken by {seat_status.occupant}")

        _truncate(booking, data.old_end_date)
        moved = insert_booking(
            db,
            seat_id=new_seat.id,
            user_id=booking.user_id,
            category=booking.category,
            duration_type=booking.duration_type,
            slot=booking.slot,
            start_time=new_start,
            end_time=original_end,
            membership_start_date=data.new_start_date,
            membership_end_date=original_end_date,
            status="confirmed",
            payment_status="paid",
            monthly_cost=booking.monthly_cost,
            duration_months=booking.duration_months,
            description=f"Moved from booking {booking.id}",
        )
        db.add_all([
            Transaction(
                booking_id=booking.id,
                user_id=booking.user_id,
                amount=0,
                status="completed",
                admin_notes=f"Old seat validity changed to {data.old_end_date}",
            ),
            Transaction(
                booking_id=moved.id,
                user_id=booking.user_id,
                amount=0,
                status="completed",
                admin_notes=f"New seat assigned. Valid until {original_end_date}",
            ),
        ])
        db.commit()

    logger.info(
        "Member %s moved from seat %d to seat %d",
        booking.user_id, booking.seat.seat_number, new_seat.seat_number,
    )
    db.refresh(booking)
    db.refresh(moved)
    return MoveResponse(
        released=serialize_booking(booking),
        moved_to=serialize_booking(moved),
    )


# ---------------------------------------------------------------------------
# Waitlist
# ---------------------------------------------------------------------------


@waitlist_router.get("/", response_model=List[WaitlistEntrySchema])
def list_waitlist(
    seat_number: Optional[int] = Query(None, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Every waitlist entry with seat number and member name, oldest first."""
    query = (
        db.query(WaitlistEntry)
        .join(Seat, Seat.id == WaitlistEntry.seat_id)
        .options(joinedload(WaitlistEntry.seat), joinedload(WaitlistEntry.user))
    )
    if seat_number is not None:
        query = query.filter(Seat.seat_number == seat_number)
    entries = query.order_by(WaitlistEntry.created_at).all()
    return [serialize_waitlist_entry(e) for e in entries]
