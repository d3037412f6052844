from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.booking import Booking
from app.models.transaction import Transaction
from app.models.waitlist import WaitlistEntry
from app.schemas.common import DashboardStats
from app.utils.booking_store import store_errors
from app.utils.pricing import add_months

router = APIRouter(prefix="/admin/dashboard", tags=["Admin - Dashboard"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _month_bounds(year: int, month: int):
    start = datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(add_months(date(year, month, 1), 1), time.min, tzinfo=timezone.utc)
    return start, end


def _active_paid(now: datetime):
    """Filters for bookings that are confirmed, paid and running right now."""
    return (
        Booking.status == "confirmed",
        Booking.payment_status == "paid",
        Booking.start_time <= now,
        Booking.end_time > now,
    )


def _count_category(category: str, now: datetime):
    return (
        select(func.count(Booking.id))
        .where(Booking.category == category, *_active_paid(now))
        .scalar_subquery()
    )


# ---------------------------------------------------------------------------
# Dashboard endpoint
# ---------------------------------------------------------------------------


@router.get("/", response_model=DashboardStats)
def get_dashboard(
    year: Optional[int] = Query(None, ge=2020, le=2100, description="Revenue year (default: current)"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Revenue month (default: current)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Headline numbers for the admin home page, computed in a single query.

    - **month_revenue**: completed transactions recorded in the month
    - **booked_seats**: distinct seats held by a confirmed, paid booking right now
    - **fixed / floating / limited_members**: confirmed, paid bookings running now
    - **pending_approvals**: bookings still awaiting approval
    - **waitlist_entries**, **total_users**
    """
    now = datetime.now(timezone.utc)
    month_start, month_end = _month_bounds(year or now.year, month or now.month)

    revenue = (
        select(func.coalesce(func.sum(Transaction.amount), 0))
        .where(
            Transaction.status == "completed",
            Transaction.created_at >= month_start,
            Transaction.created_at < month_end,
        )
        .scalar_subquery()
    )
    booked_seats = (
        select(func.count(func.distinct(Booking.seat_id)))
        .where(Booking.seat_id.isnot(None), *_active_paid(now))
        .scalar_subquery()
    )
    pending = (
        select(func.count(Booking.id))
        .where(Booking.status == "pending")
        .scalar_subquery()
    )
    waitlist = select(func.count(WaitlistEntry.id)).scalar_subquery()
    users = select(func.count(User.id)).scalar_subquery()

    with store_errors(db, "loading the dashboard"):
        row = db.execute(
            select(
                revenue.label("month_revenue"),
                booked_seats.label("booked_seats"),
                _count_category("fixed", now).label("fixed_members"),
                _count_category("floating", now).label("floating_members"),
                _count_category("limited", now).label("limited_members"),
                pending.label("pending_approvals"),
                waitlist.label("waitlist_entries"),
                users.label("total_users"),
            )
        ).one()

    return DashboardStats(**row._mapping)
