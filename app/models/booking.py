"""Booking model."""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Booking(Base):
    """Represents one booked hour on one court."""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True)
    court_id = Column(Integer, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_name = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    hour = Column(Integer, nullable=False)  # 8..21
    type = Column(String, nullable=False)  # FREE, VM, TRAINING, MATCH, MAINTENANCE
    vm_type = Column(String, nullable=True)  # SINGLES, DOUBLES, MIXED
    opponent = Column(String, nullable=True)
    opponent2 = Column(String, nullable=True)
    partner = Column(String, nullable=True)
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")

    # One booking per slot
    __table_args__ = (
        UniqueConstraint("court_id", "date", "hour", name="uq_bookings_slot"),
        Index("ix_bookings_date_court", "date", "court_id"),
    )
