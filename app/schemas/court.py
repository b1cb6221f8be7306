"""Court schemas."""
from pydantic import BaseModel


class Court(BaseModel):
    """A bookable court."""

    id: int
    name: str
