from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.api.v1.public.bookings import serialize_booking
from app.models.user import User
from app.models.booking import Booking
from app.schemas.booking import MemberOverview
from app.schemas.user import UserSummary

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


@router.get("/", response_model=List[MemberOverview])
def list_members(
    search: Optional[str] = Query(None, description="Match on name or email"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Every user with the confirmed, paid bookings they hold right now."""
    query = db.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern))
    users = query.order_by(User.full_name).all()

    now = datetime.now(timezone.utc)
    active = (
        db.query(Booking)
        .options(joinedload(Booking.seat))
        .filter(
            Booking.user_id.in_([u.id for u in users]),
            Booking.status == "confirmed",
            Booking.payment_status == "paid",
            Booking.end_time > now,
        )
        .order_by(Booking.start_time)
        .all()
    ) if users else []

    by_user = {}
    for booking in active:
        by_user.setdefault(booking.user_id, []).append(serialize_booking(booking))

    return [
        MemberOverview(
            user=UserSummary(id=u.id, full_name=u.full_name, email=u.email),
            active_bookings=by_user.get(u.id, []),
        )
        for u in users
    ]
