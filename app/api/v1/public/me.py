from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_user
from app.api.v1.public.bookings import serialize_booking, serialize_waitlist_entry
from app.models.user import User
from app.models.booking import Booking
from app.models.waitlist import WaitlistEntry
from app.schemas.user import User as UserSchema, UserUpdate
from app.schemas.booking import Booking as BookingSchema, WaitlistEntry as WaitlistEntrySchema
from app.schemas.common import PaginatedResponse

router = APIRouter(prefix="/me", tags=["Me"])


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update the authenticated user's profile (full_name, phone)."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.get("/bookings", response_model=PaginatedResponse[BookingSchema])
def list_my_bookings(
    status: Optional[str] = Query(None, description="Filter by status: pending, confirmed"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return the authenticated user's bookings, newest first."""
    query = (
        db.query(Booking)
        .options(joinedload(Booking.seat))
        .filter(Booking.user_id == current_user.id)
    )
    if status:
        query = query.filter(Booking.status == status)

    total = query.count()
    bookings = (
        query.order_by(Booking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[serialize_booking(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/seat", response_model=List[BookingSchema])
def get_my_seat(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Confirmed, paid bookings that have not ended yet."""
    now = datetime.now(timezone.utc)
    bookings = (
        db.query(Booking)
        .options(joinedload(Booking.seat))
        .filter(
            Booking.user_id == current_user.id,
            Booking.status == "confirmed",
            Booking.payment_status == "paid",
            Booking.end_time > now,
        )
        .order_by(Booking.start_time)
        .all()
    )
    return [serialize_booking(b) for b in bookings]


@router.get("/waitlist", response_model=List[WaitlistEntrySchema])
def list_my_waitlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entries = (
        db.query(WaitlistEntry)
        .options(joinedload(WaitlistEntry.seat), joinedload(WaitlistEntry.user))
        .filter(WaitlistEntry.user_id == current_user.id)
        .order_by(WaitlistEntry.created_at.desc())
        .all()
    )
    return [serialize_waitlist_entry(e) for e in entries]
