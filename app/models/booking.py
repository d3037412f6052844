import uuid
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, Text, Date, Uuid, Index
from sqlalchemy.orm import relationship
from app.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_seat_window", "seat_id", "start_time", "end_time"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    seat_id = Column(Uuid, ForeignKey("seats.id"), nullable=True, index=True) # null for floating / limited memberships
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String(20), nullable=False, index=True) # fixed, floating, limited
    duration_type = Column(String(20), nullable=False) # 6hr, 12hr, 24hr, membership
    slot = Column(String(20), nullable=True) # morning, afternoon, evening, night, day, full
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    membership_start_date = Column(Date, nullable=True)
    membership_end_date = Column(Date, nullable=True, index=True)
    status = Column(String(20), default="pending", index=True) # pending, confirmed
    payment_status = Column(String(20), default="pending", index=True) # pending, paid
    monthly_cost = Column(DECIMAL(10, 2), nullable=False)
    duration_months = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="bookings")
    seat = relationship("Seat", back_populates="bookings")
    transactions = relationship("Transaction", back_populates="booking", cascade="all, delete-orphan")
