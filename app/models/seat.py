import uuid
from sqlalchemy import Column, Integer, DateTime, Uuid, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base

class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        CheckConstraint("seat_number BETWEEN 1 AND 50", name="ck_seats_seat_number_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Pool (full-day 1-13, hourly 14-50) is derived from the number, see app.utils.slots
    seat_number = Column(Integer, unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="seat")
    waitlist_entries = relationship("WaitlistEntry", back_populates="seat", cascade="all, delete-orphan")
