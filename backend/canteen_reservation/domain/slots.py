from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterator, Protocol, Sequence

from ..models import Meal
from .errors import InvalidArgumentError
from .intervals import from_minutes, intersect, to_minutes


class MealWindow(Protocol):
    meal: Meal
    start_time: time
    end_time: time


@dataclass(frozen=True)
class SlotWindow:
    date: date
    meal: Meal
    start: time
    end: time


@dataclass(frozen=True)
class SlotPlan:
    """Re-iterable plan of candidate slots for one canteen.

    Iteration walks dates ascending, then working hours in stored order,
    then slot start ascending. Each ``iter()`` starts a fresh generator.
    """

    working_hours: Sequence[MealWindow]
    start_date: date
    end_date: date
    start_time: time
    end_time: time
    duration: int

    def __iter__(self) -> Iterator[SlotWindow]:
        query_start = to_minutes(self.start_time)
        query_end = to_minutes(self.end_time)
        step = timedelta(days=1)
        day = self.start_date
        while day <= self.end_date:
            for window in self.working_hours:
                clipped = intersect(
                    query_start,
                    query_end,
                    to_minutes(window.start_time),
                    to_minutes(window.end_time),
                )
                if clipped is None:
                    continue
                for start, end in tile(clipped[0], clipped[1], self.duration):
                    yield SlotWindow(date=day, meal=window.meal, start=from_minutes(start), end=from_minutes(end))
            day += step


def tile(start: int, end: int, duration: int) -> Iterator[tuple[int, int]]:
    """Split ``[start, end)`` into consecutive ``duration`` pieces; the last one is clipped."""
    cursor = start
    while cursor < end:
        yield cursor, min(cursor + duration, end)
        cursor += duration


def generate_slots(
    working_hours: Sequence[MealWindow],
    *,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    duration: int,
) -> SlotPlan:
    if duration <= 0:
        raise InvalidArgumentError("duration must be a positive number of minutes")
    return SlotPlan(
        working_hours=tuple(working_hours),
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
    )
