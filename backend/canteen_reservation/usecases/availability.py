from dataclasses import dataclass
from datetime import date, time
from typing import List

from ..domain.errors import CanteenNotFoundError
from ..domain.intervals import to_minutes
from ..domain.repositories import CanteenRepository, ReservationRepository
from ..domain.services import parse_id, remaining_capacity
from ..domain.slots import SlotWindow, generate_slots
from ..models import Canteen


@dataclass(frozen=True)
class SlotAvailability:
    window: SlotWindow
    remaining: int


@dataclass(frozen=True)
class CanteenStatus:
    canteen_id: str
    slots: List[SlotAvailability]


async def slot_remaining_capacity(
    res_repo: ReservationRepository,
    *,
    canteen_id: str,
    capacity: int,
    day: date,
    slot_start: time,
    slot_end: time,
) -> int:
    reserved = await res_repo.count_overlapping(canteen_id, day, to_minutes(slot_start), to_minutes(slot_end))
    return remaining_capacity(capacity, reserved)


async def canteen_status(
    canteen_repo: CanteenRepository,
    res_repo: ReservationRepository,
    *,
    canteen_id: str,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    duration: int,
) -> CanteenStatus:
    """Remaining capacity for every slot of one canteen in the query range.

    Each slot is counted at the moment it is reached; the result is not a
    single snapshot when reservations are written while it runs.
    """
    canteen = await canteen_repo.get(parse_id(canteen_id, what="canteen id"))
    if canteen is None:
        raise CanteenNotFoundError(f"canteen {canteen_id} not found")
    return await _resolve(
        res_repo,
        canteen,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
    )


async def all_canteens_status(
    canteen_repo: CanteenRepository,
    res_repo: ReservationRepository,
    *,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    duration: int,
) -> List[CanteenStatus]:
    items: List[CanteenStatus] = []
    for canteen in await canteen_repo.list_all():
        items.append(
            await _resolve(
                res_repo,
                canteen,
                start_date=start_date,
                end_date=end_date,
                start_time=start_time,
                end_time=end_time,
                duration=duration,
            )
        )
    return items


async def _resolve(
    res_repo: ReservationRepository,
    canteen: Canteen,
    *,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    duration: int,
) -> CanteenStatus:
    plan = generate_slots(
        canteen.working_hours,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
    )
    slots: List[SlotAvailability] = []
    for window in plan:
        remaining = await slot_remaining_capacity(
            res_repo,
            canteen_id=canteen.id,
            capacity=canteen.capacity,
            day=window.date,
            slot_start=window.start,
            slot_end=window.end,
        )
        slots.append(SlotAvailability(window=window, remaining=remaining))
    return CanteenStatus(canteen_id=canteen.id, slots=slots)
