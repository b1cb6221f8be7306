"""Closed value sets used across the API and the booking rules."""
from enum import Enum


class UserRole(str, Enum):
    GUEST = "GUEST"
    MEMBER = "MEMBER"
    TRAINER = "TRAINER"
    ADMIN = "ADMIN"


class AccountStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BookingType(str, Enum):
    FREE = "FREE"  # free play
    VM = "VM"  # club championship
    TRAINING = "TRAINING"
    MATCH = "MATCH"  # league match day
    MAINTENANCE = "MAINTENANCE"


class VMType(str, Enum):
    SINGLES = "SINGLES"
    DOUBLES = "DOUBLES"
    MIXED = "MIXED"
