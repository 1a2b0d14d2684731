from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional

import pytest
from canteen_reservation.domain.errors import CanteenNotFoundError, InvalidIdentifierError
from canteen_reservation.domain.intervals import overlaps
from canteen_reservation.models import Canteen, Meal, WorkingHour, new_id
from canteen_reservation.usecases import availability as uc

DAY = date(2030, 6, 3)


@dataclass
class Booking:
    canteen_id: str
    day: date
    start: int
    end: int


def _canteen(capacity: int, *windows: WorkingHour) -> Canteen:
    now = datetime(2030, 1, 1)
    return Canteen(
        id=new_id(),
        name=f"Canteen {capacity}",
        name_key=f"canteen {capacity}",
        location="Campus",
        capacity=capacity,
        created_at=now,
        updated_at=now,
        working_hours=list(windows),
    )


def _lunch() -> WorkingHour:
    return WorkingHour(position=0, meal=Meal.LUNCH, start_time=time(12, 0), end_time=time(14, 0))


class FakeCanteenRepo:
    def __init__(self, *canteens: Canteen) -> None:
        self.canteens = list(canteens)

    async def get(self, canteen_id: str) -> Optional[Canteen]:
        return next((c for c in self.canteens if c.id == canteen_id), None)

    async def list_all(self) -> List[Canteen]:
        return list(self.canteens)


class FakeResRepo:
    def __init__(self, bookings: List[Booking]) -> None:
        self.bookings = bookings
        self.queries = 0

    async def count_overlapping(self, canteen_id: str, day: date, start: int, end: int) -> int:
        self.queries += 1
        return sum(
            1
            for b in self.bookings
            if b.canteen_id == canteen_id and b.day == day and overlaps(b.start, b.end, start, end)
        )


async def _status(canteens: FakeCanteenRepo, res: FakeResRepo, canteen_id: str, duration: int = 30) -> uc.CanteenStatus:
    return await uc.canteen_status(
        canteens,
        res,
        canteen_id=canteen_id,
        start_date=DAY,
        end_date=DAY,
        start_time=time(11, 0),
        end_time=time(15, 0),
        duration=duration,
    )


@pytest.mark.asyncio
async def test_remaining_capacity_subtracts_overlapping_reservations() -> None:
    canteen = _canteen(10, _lunch())
    bookings = [Booking(canteen.id, DAY, 720, 750) for _ in range(3)]
    result = await _status(FakeCanteenRepo(canteen), FakeResRepo(bookings), canteen.id)
    remaining = {slot.window.start: slot.remaining for slot in result.slots}
    assert remaining == {time(12, 0): 7, time(12, 30): 10, time(13, 0): 10, time(13, 30): 10}


@pytest.mark.asyncio
async def test_hour_reservation_counts_against_both_half_hour_slots() -> None:
    canteen = _canteen(2, _lunch())
    bookings = [Booking(canteen.id, DAY, 750, 810)]
    result = await _status(FakeCanteenRepo(canteen), FakeResRepo(bookings), canteen.id)
    assert [slot.remaining for slot in result.slots] == [2, 1, 1, 2]


@pytest.mark.asyncio
async def test_remaining_is_clamped_at_zero() -> None:
    canteen = _canteen(1, _lunch())
    bookings = [Booking(canteen.id, DAY, 720, 780), Booking(canteen.id, DAY, 720, 750)]
    result = await _status(FakeCanteenRepo(canteen), FakeResRepo(bookings), canteen.id, duration=60)
    assert [slot.remaining for slot in result.slots] == [0, 1]


@pytest.mark.asyncio
async def test_other_days_and_canteens_are_ignored() -> None:
    canteen = _canteen(3, _lunch())
    bookings = [
        Booking(canteen.id, date(2030, 6, 4), 720, 750),
        Booking(new_id(), DAY, 720, 750),
    ]
    result = await _status(FakeCanteenRepo(canteen), FakeResRepo(bookings), canteen.id)
    assert all(slot.remaining == 3 for slot in result.slots)


@pytest.mark.asyncio
async def test_unknown_canteen_raises() -> None:
    with pytest.raises(CanteenNotFoundError):
        await _status(FakeCanteenRepo(), FakeResRepo([]), new_id())


@pytest.mark.asyncio
async def test_malformed_canteen_id_raises() -> None:
    with pytest.raises(InvalidIdentifierError):
        await _status(FakeCanteenRepo(), FakeResRepo([]), "abc")


@pytest.mark.asyncio
async def test_all_canteens_status_runs_each_canteen() -> None:
    first = _canteen(4, _lunch())
    second = _canteen(2, WorkingHour(position=0, meal=Meal.DINNER, start_time=time(18, 0), end_time=time(20, 0)))
    res = FakeResRepo([Booking(first.id, DAY, 720, 750)])
    items = await uc.all_canteens_status(
        FakeCanteenRepo(first, second),
        res,
        start_date=DAY,
        end_date=DAY,
        start_time=time(11, 0),
        end_time=time(15, 0),
        duration=60,
    )
    assert [item.canteen_id for item in items] == [first.id, second.id]
    assert [slot.remaining for slot in items[0].slots] == [3, 4]
    assert items[1].slots == []
    assert res.queries == 2


@pytest.mark.asyncio
async def test_slot_remaining_capacity_for_single_slot() -> None:
    canteen_id = new_id()
    res = FakeResRepo([Booking(canteen_id, DAY, 720, 780)])
    remaining = await uc.slot_remaining_capacity(
        res,
        canteen_id=canteen_id,
        capacity=5,
        day=DAY,
        slot_start=time(12, 30),
        slot_end=time(13, 0),
    )
    assert remaining == 4
