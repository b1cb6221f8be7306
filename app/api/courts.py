"""Court endpoints."""
from typing import List
from fastapi import APIRouter

from app.schemas.court import Court
from app.services.slot_grid import COURTS

router = APIRouter(prefix="/courts", tags=["courts"])


@router.get("", response_model=List[Court])
async def list_courts():
    """List the club's courts."""
    return COURTS
