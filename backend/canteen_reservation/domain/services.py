from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Sequence, Union

from ..models import Meal
from .errors import (
    CapacityExceededError,
    InvalidAlignmentError,
    InvalidDurationError,
    InvalidIdentifierError,
    OutsideWorkingHoursError,
    PastDateError,
    StudentDoubleBookedError,
    WorkingHoursError,
)
from .intervals import contains, overlaps, reservation_interval, to_minutes
from .slots import MealWindow

ALLOWED_DURATIONS = (30, 60)
ALLOWED_START_MINUTES = (0, 30)
MAX_STATUS_DAYS = 31


class Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.UNSET


@dataclass(frozen=True)
class WorkingHourSpec:
    meal: Meal
    start_time: time
    end_time: time


@dataclass(frozen=True)
class CanteenPatch:
    """Partial canteen update. Fields left as ``UNSET`` are not touched."""

    name: Union[str, Unset] = UNSET
    location: Union[str, Unset] = UNSET
    capacity: Union[int, Unset] = UNSET
    working_hours: Union[Sequence[WorkingHourSpec], Unset] = UNSET

    def provided(self) -> dict[str, object]:
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("location", self.location),
                ("capacity", self.capacity),
                ("working_hours", self.working_hours),
            )
            if value is not UNSET
        }


@dataclass(frozen=True)
class AdmissionSnapshot:
    capacity: int
    working_hours: Sequence[MealWindow]
    student_has_overlap: bool
    reserved: int


def parse_id(value: str, *, what: str = "id") -> str:
    """Return the canonical string form of a UUID identifier."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError) as exc:
        raise InvalidIdentifierError(f"invalid {what}: {value!r}") from exc


def parse_meal(value: str) -> Meal:
    try:
        return Meal(value.strip().lower())
    except ValueError as exc:
        raise ValueError("meal must be BREAKFAST, LUNCH, or DINNER") from exc


def canteen_name_key(name: str) -> str:
    return name.strip().casefold()


def remaining_capacity(capacity: int, reserved: int) -> int:
    """Seats left in a slot; shortfall is clamped to zero, never negative."""
    return max(0, capacity - reserved)


def fits_working_hours(working_hours: Sequence[MealWindow], start: int, end: int) -> bool:
    return any(
        contains(to_minutes(window.start_time), to_minutes(window.end_time), start, end)
        for window in working_hours
    )


def validate_request_shape(*, day: date, start: time, duration: int, today: date) -> None:
    """Checks that need no store access, in admission order."""
    if day < today:
        raise PastDateError("reservations cannot be made for past dates")
    if duration not in ALLOWED_DURATIONS:
        raise InvalidDurationError("duration must be either 30 or 60 minutes")
    if start.minute not in ALLOWED_START_MINUTES or start.second or start.microsecond:
        raise InvalidAlignmentError("time must start on the full or half hour")


def validate_admission(snapshot: AdmissionSnapshot, *, start: time, duration: int) -> int:
    """
    Pure validation of the store-dependent admission rules.
    Returns remaining capacity after booking if OK. Raises domain errors otherwise.
    """
    slot_start, slot_end = reservation_interval(start, duration)
    if not fits_working_hours(snapshot.working_hours, slot_start, slot_end):
        raise OutsideWorkingHoursError("requested time is outside the canteen's working hours")
    if snapshot.student_has_overlap:
        raise StudentDoubleBookedError("student already has an overlapping active reservation")
    if snapshot.reserved >= snapshot.capacity:
        raise CapacityExceededError("capacity exceeded")
    return remaining_capacity(snapshot.capacity, snapshot.reserved + 1)


def validate_working_hours(working_hours: Sequence[WorkingHourSpec]) -> list[str]:
    violations: list[str] = []
    seen: set[Meal] = set()
    for wh in working_hours:
        if wh.meal in seen:
            violations.append(f"Duplicate meal: {wh.meal.value.upper()}")
        seen.add(wh.meal)
        if wh.start_time >= wh.end_time:
            violations.append(f"{wh.meal.value.upper()}: from time must be earlier than to time.")
        if not (_whole_minute(wh.start_time) and _whole_minute(wh.end_time)):
            violations.append(f"{wh.meal.value.upper()}: times must be whole minutes.")

    for i, first in enumerate(working_hours):
        for second in working_hours[i + 1 :]:
            if overlaps(first.start_time, first.end_time, second.start_time, second.end_time):
                violations.append(
                    "Working hours overlap: "
                    f"{first.meal.value.upper()} ({_hhmm(first.start_time)}-{_hhmm(first.end_time)}) and "
                    f"{second.meal.value.upper()} ({_hhmm(second.start_time)}-{_hhmm(second.end_time)})"
                )
    return violations


def validate_status_request(
    *,
    start_date: date,
    end_date: date,
    start_time: time,
    end_time: time,
    duration: int,
    max_days: Optional[int] = MAX_STATUS_DAYS,
) -> list[str]:
    violations: list[str] = []
    if start_date > end_date:
        violations.append("startDate must be less than or equal to endDate.")
    if start_time >= end_time:
        violations.append("startTime must be less than endTime.")
    if not (_whole_minute(start_time) and _whole_minute(end_time)):
        violations.append("startTime and endTime must be whole minutes.")
    if duration not in ALLOWED_DURATIONS:
        violations.append("duration must be either 30 or 60 minutes.")
    if max_days is not None and (end_date - start_date).days > max_days:
        violations.append(f"Date range is too large. Maximum allowed is {max_days} days.")
    return violations


def ensure_working_hours(working_hours: Sequence[WorkingHourSpec]) -> None:
    violations = validate_working_hours(working_hours)
    if violations:
        raise WorkingHoursError(violations)


def _whole_minute(value: time) -> bool:
    return value.second == 0 and value.microsecond == 0


def _hhmm(value: time) -> str:
    return value.strftime("%H:%M")
