import logging
from datetime import datetime, timezone
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.booking import Booking
from app.models.seat import Seat
from app.schemas.seat import (
    SeatCreate,
    Seat as SeatSchema,
    SeatBulkCreate,
    SeatBulkCreateResponse,
)
from app.utils.slots import ACTIVE_STATUSES, FULL_DAY_POOL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/seats", tags=["Admin - Seats"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_seat(seat: Seat) -> SeatSchema:
    return SeatSchema(
        id=seat.id,
        seat_number=seat.seat_number,
        pool="full_day" if seat.seat_number in FULL_DAY_POOL else "hourly",
        created_at=seat.created_at,
    )


# ---------------------------------------------------------------------------
# Single seat creation
# ---------------------------------------------------------------------------


@router.post("/", response_model=SeatSchema, status_code=status.HTTP_201_CREATED)
def create_seat(
    data: SeatCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    if db.query(Seat.id).filter(Seat.seat_number == data.seat_number).first():
        raise HTTPException(status_code=409, detail=f"Seat {data.seat_number} already exists")

    seat = Seat(seat_number=data.seat_number)
    db.add(seat)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Seat {data.seat_number} already exists")
    db.refresh(seat)
    logger.info("Seat %d added", seat.seat_number)
    return _serialize_seat(seat)


# ---------------------------------------------------------------------------
# Bulk seat creation
# ---------------------------------------------------------------------------


@router.post("/bulk", response_model=SeatBulkCreateResponse, status_code=status.HTTP_201_CREATED)
def bulk_create_seats(
    data: SeatBulkCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Create every seat in the inclusive number range, skipping numbers that already exist."""
    wanted = range(data.first_number, data.last_number + 1)
    existing = {
        n for (n,) in db.query(Seat.seat_number).filter(Seat.seat_number.in_(list(wanted))).all()
    }

    new_numbers = [n for n in wanted if n not in existing]
    db.add_all([Seat(seat_number=n) for n in new_numbers])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Seats were added concurrently, please retry")

    logger.info("Added %d seat(s) in %d-%d", len(new_numbers), data.first_number, data.last_number)
    return SeatBulkCreateResponse(created_count=len(new_numbers), skipped_numbers=sorted(existing))


# ---------------------------------------------------------------------------
# List seats
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[SeatSchema])
def list_seats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    seats = db.query(Seat).order_by(Seat.seat_number).all()
    return [_serialize_seat(s) for s in seats]


# ---------------------------------------------------------------------------
# Delete a single seat
# ---------------------------------------------------------------------------


@router.delete("/{seat_id}", status_code=status.HTTP_200_OK)
def delete_seat(
    seat_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    seat = db.query(Seat).filter(Seat.id == seat_id).first()
    if not seat:
        raise HTTPException(status_code=404, detail="Seat not found")

    active = (
        db.query(Booking.id)
        .filter(
            Booking.seat_id == seat_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.end_time > datetime.now(timezone.utc),
        )
        .count()
    )
    if active:
        raise HTTPException(
            status_code=409,
            detail=f"Seat {seat.seat_number} has {active} active booking(s); release them first",
        )

    # Waitlist entries are deleted with the seat; past bookings keep their row with seat_id cleared
    db.delete(seat)
    db.commit()
    logger.info("Seat %d removed", seat.seat_number)
    return {"id": str(seat_id), "deleted": True}
