from __future__ import annotations

from datetime import date, time
from typing import List, Optional, Sequence

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.intervals import reservation_interval
from ..domain.repositories import CanteenRepository, ReservationRepository, StudentRepository
from ..domain.services import WorkingHourSpec
from ..models import Canteen, Reservation, ReservationStatus, Student, WorkingHour
from ..utils.time import utc_now_naive


def _overlapping(stmt: Select, day: date, start: int, end: int) -> Select:
    # half-open [start, end) against [start_minute, end_minute)
    return stmt.where(
        Reservation.date == day,
        Reservation.status == ReservationStatus.ACTIVE,
        Reservation.start_minute < end,
        Reservation.end_minute > start,
    )


class SqlAlchemyStudentRepository(StudentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, student_id: str) -> Student | None:
        return await self.session.get(Student, student_id)

    async def get_by_email(self, email: str) -> Student | None:
        result = await self.session.scalar(select(Student).where(Student.email == email))
        return result if isinstance(result, Student) else None

    async def create(self, *, name: str, email: str, is_admin: bool) -> Student:
        student = Student(name=name, email=email, is_admin=is_admin, created_at=utc_now_naive())
        self.session.add(student)
        await self.session.flush()
        return student


class SqlAlchemyCanteenRepository(CanteenRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, canteen_id: str) -> Canteen | None:
        return await self.session.get(Canteen, canteen_id)

    async def get_for_update(self, canteen_id: str) -> Canteen | None:
        result = await self.session.scalar(select(Canteen).where(Canteen.id == canteen_id).with_for_update())
        return result if isinstance(result, Canteen) else None

    async def get_by_name_key(self, name_key: str) -> Canteen | None:
        result = await self.session.scalar(select(Canteen).where(Canteen.name_key == name_key))
        return result if isinstance(result, Canteen) else None

    async def list_all(self) -> List[Canteen]:
        rows = await self.session.scalars(select(Canteen).order_by(Canteen.created_at, Canteen.id))
        return list(rows.all())

    async def create(
        self,
        *,
        name: str,
        name_key: str,
        location: str,
        capacity: int,
        working_hours: Sequence[WorkingHourSpec],
    ) -> Canteen:
        now = utc_now_naive()
        canteen = Canteen(
            name=name,
            name_key=name_key,
            location=location,
            capacity=capacity,
            created_at=now,
            updated_at=now,
            working_hours=_working_hour_rows(working_hours),
        )
        self.session.add(canteen)
        await self.session.flush()
        return canteen

    async def replace_working_hours(self, canteen: Canteen, working_hours: Sequence[WorkingHourSpec]) -> None:
        # clear first so the (canteen_id, meal) constraint never sees old and new rows together
        canteen.working_hours.clear()
        await self.session.flush()
        canteen.working_hours.extend(_working_hour_rows(working_hours))

    async def save(self, canteen: Canteen) -> Canteen:
        canteen.updated_at = utc_now_naive()
        self.session.add(canteen)
        await self.session.flush()
        return canteen

    async def delete(self, canteen: Canteen) -> None:
        await self.session.delete(canteen)
        await self.session.flush()


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, reservation_id: str) -> Optional[Reservation]:
        return await self.session.get(Reservation, reservation_id)

    async def get_for_update(self, reservation_id: str) -> Optional[Reservation]:
        result = await self.session.scalar(
            select(Reservation).where(Reservation.id == reservation_id).with_for_update()
        )
        return result if isinstance(result, Reservation) else None

    async def student_has_overlap(self, student_id: str, day: date, start: int, end: int) -> bool:
        stmt = _overlapping(select(Reservation.id), day, start, end).where(Reservation.student_id == student_id)
        return await self.session.scalar(stmt.limit(1)) is not None

    async def count_overlapping(self, canteen_id: str, day: date, start: int, end: int) -> int:
        stmt = _overlapping(select(func.count(Reservation.id)), day, start, end).where(
            Reservation.canteen_id == canteen_id
        )
        return int(await self.session.scalar(stmt) or 0)

    async def create(
        self,
        *,
        student_id: str,
        canteen_id: str,
        day: date,
        start: time,
        duration: int,
        status: ReservationStatus,
    ) -> Reservation:
        now = utc_now_naive()
        start_minute, end_minute = reservation_interval(start, duration)
        reservation = Reservation(
            student_id=student_id,
            canteen_id=canteen_id,
            date=day,
            time=start,
            duration=duration,
            start_minute=start_minute,
            end_minute=end_minute,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def save(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def cancel_active_for_canteen(self, canteen_id: str) -> int:
        stmt = (
            update(Reservation)
            .where(
                Reservation.canteen_id == canteen_id,
                Reservation.status == ReservationStatus.ACTIVE,
            )
            .values(status=ReservationStatus.CANCELLED, updated_at=utc_now_naive())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def list_by_student(self, student_id: str) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .where(Reservation.student_id == student_id)
            .order_by(Reservation.date, Reservation.start_minute)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())


def _working_hour_rows(working_hours: Sequence[WorkingHourSpec]) -> list[WorkingHour]:
    return [
        WorkingHour(position=position, meal=wh.meal, start_time=wh.start_time, end_time=wh.end_time)
        for position, wh in enumerate(working_hours)
    ]
