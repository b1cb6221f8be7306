"""Error taxonomy shared by the services and the API layer.

Every error carries the HTTP status the API answers with, so routers never
have to translate business failures by hand.
"""
from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": type(self).__name__}


class ValidationError(BookingError):
    """Malformed input: unknown court, hour out of range, bad date or enum."""

    status_code = 422


class RuleViolation(BookingError):
    """A booking rule rejected the request.

    ``rule`` is a stable machine-readable code (``slot_taken``,
    ``daily_quota``, ...); ``hour`` and ``attribute`` point at the offending
    slot or field when there is one.
    """

    status_code = 409

    def __init__(
        self,
        rule: str,
        message: str,
        hour: Optional[int] = None,
        attribute: Optional[str] = None,
    ):
        super().__init__(message)
        self.rule = rule
        self.hour = hour
        self.attribute = attribute

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["rule"] = self.rule
        if self.hour is not None:
            data["hour"] = self.hour
        if self.attribute is not None:
            data["attribute"] = self.attribute
        return data


class ConfirmationRequired(BookingError):
    """The action is valid but destructive enough to need ``confirm=true``."""

    status_code = 428

    def __init__(self, message: str, block_length: int = 1):
        super().__init__(message)
        self.block_length = block_length

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["block_length"] = self.block_length
        return data


class AuthenticationError(BookingError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class AuthorizationError(BookingError):
    """The acting user is not allowed to touch this resource."""

    status_code = 403


class NotFoundError(BookingError):
    status_code = 404


class StoreError(BookingError):
    """The persistence backend failed."""

    status_code = 503


class SlotConflictError(StoreError):
    """The backend refused a write because the (court, date, hour) slot is taken."""

    status_code = 409
