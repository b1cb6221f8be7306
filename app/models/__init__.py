"""Database models."""
from app.models.user import User
from app.models.booking import Booking

__all__ = ["User", "Booking"]
