from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.api.v1.public.bookings import serialize_booking
from app.models.user import User
from app.schemas.booking import MembershipCreate, Booking as BookingSchema
from app.utils.memberships import create_membership

router = APIRouter(prefix="/memberships", tags=["Memberships"])


@router.post("/", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def request_membership(
    data: MembershipCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Request a membership. Three categories:

    - **fixed**: a dedicated seat (1-13); `seat_number` required. Starts on the
      seat's next available date.
    - **floating**: any free seat on arrival; no seat is assigned.
    - **limited**: limited hours; `shift` (morning or evening) required.

    The booking is created as pending / payment pending.
    """
    booking = create_membership(
        db,
        user_id=current_user.id,
        category=data.category,
        months=data.duration_months,
        seat_number=data.seat_number,
        shift=data.shift,
    )
    return serialize_booking(booking)
