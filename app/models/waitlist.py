import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from app.db.session import Base

class WaitlistEntry(Base):
    __tablename__ = "waitlist"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    seat_id = Column(Uuid, ForeignKey("seats.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    slot = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    seat = relationship("Seat", back_populates="waitlist_entries")
    user = relationship("User")
