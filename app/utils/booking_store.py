"""
Data access used by the availability resolver and the booking write path.

Functions here flush but never commit; the caller owns the transaction.
Any SQLAlchemy failure rolls the session back and surfaces as ``StoreError``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import SeatRaceError, StoreError
from app.models.booking import Booking
from app.models.seat import Seat
from app.models.user import User
from app.models.waitlist import WaitlistEntry
from app.utils.slots import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


class ActiveBooking(NamedTuple):
    seat_id: UUID
    duration_type: str
    slot: Optional[str]
    start_time: datetime
    end_time: datetime
    occupant: Optional[str]


def as_utc(value: datetime) -> datetime:
    """Normalise to an aware UTC datetime; naive values (e.g. read back from SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@contextmanager
def store_errors(db: Session, action: str):
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity conflict while %s: %s", action, exc.orig)
        raise SeatRaceError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store failure while %s", action)
        raise StoreError() from exc


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_seats(db: Session, pool: range) -> List[Seat]:
    """Seats whose number falls inside ``pool``, ordered by number."""
    return (
        db.query(Seat)
        .filter(Seat.seat_number >= pool.start, Seat.seat_number < pool.stop)
        .order_by(Seat.seat_number)
        .all()
    )


def list_active_bookings(
    db: Session, seat_ids: Iterable[UUID], start: datetime, end: datetime
) -> List[ActiveBooking]:
    """Pending or confirmed bookings on ``seat_ids`` overlapping [start, end), oldest first."""
    seat_ids = list(seat_ids)
    if not seat_ids:
        return []
    rows = (
        db.query(
            Booking.seat_id,
            Booking.duration_type,
            Booking.slot,
            Booking.start_time,
            Booking.end_time,
            User.full_name,
        )
        .join(User, User.id == Booking.user_id)
        .filter(
            Booking.seat_id.in_(seat_ids),
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_time < as_utc(end),
            Booking.end_time > as_utc(start),
        )
        .order_by(Booking.created_at, Booking.start_time)
        .all()
    )
    return [
        ActiveBooking(
            seat_id=r.seat_id,
            duration_type=r.duration_type,
            slot=r.slot,
            start_time=as_utc(r.start_time),
            end_time=as_utc(r.end_time),
            occupant=r.full_name,
        )
        for r in rows
    ]


def list_waitlist_counts(db: Session, seat_ids: Iterable[UUID]) -> Dict[UUID, int]:
    """Number of waitlist entries per seat, regardless of slot or date."""
    seat_ids = list(seat_ids)
    if not seat_ids:
        return {}
    rows = (
        db.query(WaitlistEntry.seat_id, func.count(WaitlistEntry.id))
        .filter(WaitlistEntry.seat_id.in_(seat_ids))
        .group_by(WaitlistEntry.seat_id)
        .all()
    )
    return {seat_id: count for seat_id, count in rows}


def lock_seat(db: Session, seat_id: UUID) -> Optional[Seat]:
    """
    Load a seat row with ``SELECT ... FOR UPDATE``.

    Concurrent booking writes for the same seat queue up behind the lock until
    the holder commits, so the availability re-check that follows sees every
    booking committed before it.
    """
    return db.query(Seat).filter(Seat.id == seat_id).with_for_update().first()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def insert_booking(db: Session, **fields) -> Booking:
    for key in ("start_time", "end_time"):
        fields[key] = as_utc(fields[key])
    booking = Booking(**fields)
    db.add(booking)
    db.flush()
    return booking


def insert_waitlist_entry(db: Session, **fields) -> WaitlistEntry:
    entry = WaitlistEntry(**fields)
    db.add(entry)
    db.flush()
    return entry
