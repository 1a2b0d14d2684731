from __future__ import annotations

from datetime import date, time
from typing import Protocol, Sequence

from ..models import Canteen, Reservation, ReservationStatus, Student
from .services import WorkingHourSpec


class StudentRepository(Protocol):
    async def get(self, student_id: str) -> Student | None: ...

    async def get_by_email(self, email: str) -> Student | None: ...

    async def create(self, *, name: str, email: str, is_admin: bool) -> Student: ...


class CanteenRepository(Protocol):
    async def get(self, canteen_id: str) -> Canteen | None: ...

    async def get_for_update(self, canteen_id: str) -> Canteen | None: ...

    async def get_by_name_key(self, name_key: str) -> Canteen | None: ...

    async def list_all(self) -> list[Canteen]: ...

    async def create(
        self,
        *,
        name: str,
        name_key: str,
        location: str,
        capacity: int,
        working_hours: Sequence[WorkingHourSpec],
    ) -> Canteen: ...

    async def replace_working_hours(self, canteen: Canteen, working_hours: Sequence[WorkingHourSpec]) -> None: ...

    async def save(self, canteen: Canteen) -> Canteen: ...

    async def delete(self, canteen: Canteen) -> None: ...


class ReservationRepository(Protocol):
    async def get(self, reservation_id: str) -> Reservation | None: ...

    async def get_for_update(self, reservation_id: str) -> Reservation | None: ...

    async def student_has_overlap(self, student_id: str, day: date, start: int, end: int) -> bool: ...

    async def count_overlapping(self, canteen_id: str, day: date, start: int, end: int) -> int: ...

    async def create(
        self,
        *,
        student_id: str,
        canteen_id: str,
        day: date,
        start: time,
        duration: int,
        status: ReservationStatus,
    ) -> Reservation: ...

    async def save(self, reservation: Reservation) -> Reservation: ...

    async def cancel_active_for_canteen(self, canteen_id: str) -> int: ...

    async def list_by_student(self, student_id: str) -> list[Reservation]: ...
