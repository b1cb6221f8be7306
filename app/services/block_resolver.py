"""Reconstruct multi-hour reservations from per-hour booking records.

A reservation of N hours is stored as N independent rows. Two rows belong to
the same block when they sit on the same court and date at adjacent hours and
share owner, type and match attributes. Nothing about blocks is persisted;
every answer is derived from the current bookings of the date.
"""
from typing import List, Optional, Tuple

from app.schemas.booking import BlockInfo, BookingInDB
from app.services.slot_grid import LAST_START_HOUR, OPENING_HOUR, SlotGrid

BlockKey = Tuple[str, str, Optional[str], Optional[str], Optional[str], Optional[str]]


def block_key(booking: BookingInDB) -> BlockKey:
    return (
        booking.user_id,
        booking.type.value,
        booking.vm_type.value if booking.vm_type else None,
        booking.opponent,
        booking.opponent2,
        booking.partner,
    )


def _same_block(a: Optional[BookingInDB], b: Optional[BookingInDB]) -> bool:
    return a is not None and b is not None and block_key(a) == block_key(b)


def find_block(grid: SlotGrid, court_id: int, start_hour: int) -> List[BookingInDB]:
    """Bookings of the block that starts at ``start_hour``, in hour order.

    Walks forward only, so called on an hour inside a block it returns the
    tail from that hour on.
    """
    start = grid.booking_at(court_id, start_hour)
    if start is None:
        return []

    block = [start]
    hour = start_hour + 1
    while hour <= LAST_START_HOUR:
        nxt = grid.booking_at(court_id, hour)
        if not _same_block(start, nxt):
            break
        block.append(nxt)
        hour += 1
    return block


def find_block_start(grid: SlotGrid, court_id: int, hour: int) -> Optional[int]:
    """First hour of the block containing ``hour``, or None for an empty cell."""
    booking = grid.booking_at(court_id, hour)
    if booking is None:
        return None

    start = hour
    while start - 1 >= OPENING_HOUR and _same_block(booking, grid.booking_at(court_id, start - 1)):
        start -= 1
    return start


def find_block_containing(grid: SlotGrid, court_id: int, hour: int) -> List[BookingInDB]:
    """The whole block around ``hour``, whichever of its hours is given."""
    start = find_block_start(grid, court_id, hour)
    if start is None:
        return []
    return find_block(grid, court_id, start)


def block_info(grid: SlotGrid, court_id: int, hour: int) -> BlockInfo:
    """Describe how the cell at (court, hour) should be rendered.

    Only block starts are rendered; continuation cells report
    ``is_block_start=False`` and a zero length.
    """
    booking = grid.booking_at(court_id, hour)
    if booking is None:
        return BlockInfo(is_part_of_block=False, is_block_start=False, block_length=0)

    if _same_block(booking, grid.booking_at(court_id, hour - 1)):
        return BlockInfo(is_part_of_block=True, is_block_start=False, block_length=0)

    length = len(find_block(grid, court_id, hour))
    return BlockInfo(is_part_of_block=length > 1, is_block_start=True, block_length=length)
