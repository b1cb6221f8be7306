"""User model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class User(Base):
    """Represents a club account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)  # stored lower-cased
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="MEMBER")  # GUEST, MEMBER, TRAINER, ADMIN
    status = Column(String, nullable=False, default="PENDING")  # PENDING, APPROVED, REJECTED
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")
