from datetime import date, time
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .domain.services import UNSET, CanteenPatch, WorkingHourSpec, parse_meal
from .models import Canteen, Meal, Reservation, ReservationStatus, Student, WorkingHour
from .usecases.availability import CanteenStatus, SlotAvailability
from .utils.time import format_time


class StudentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    is_admin: bool = Field(default=False, alias="isAdmin")


class StudentRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    is_admin: bool = Field(alias="isAdmin")

    @classmethod
    def from_db(cls, *, student: Student) -> "StudentRead":
        return cls(id=student.id, name=student.name, email=student.email, is_admin=student.is_admin)


class WorkingHourIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meal: Meal
    from_time: time = Field(alias="from")
    to_time: time = Field(alias="to")

    @field_validator("meal", mode="before")
    @classmethod
    def _normalize_meal(cls, value: Any) -> Meal:
        if isinstance(value, Meal):
            return value
        return parse_meal(str(value))

    def to_spec(self) -> WorkingHourSpec:
        return WorkingHourSpec(meal=self.meal, start_time=self.from_time, end_time=self.to_time)


class WorkingHourRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meal: Meal
    from_time: time = Field(alias="from")
    to_time: time = Field(alias="to")

    @field_serializer("from_time", "to_time")
    def _ser_time(self, value: time) -> str:
        return format_time(value)

    @classmethod
    def from_db(cls, *, working_hour: WorkingHour) -> "WorkingHourRead":
        return cls(meal=working_hour.meal, from_time=working_hour.start_time, to_time=working_hour.end_time)


class CanteenCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    capacity: int = Field(ge=1, le=1000)
    working_hours: List[WorkingHourIn] = Field(alias="workingHours")

    def specs(self) -> List[WorkingHourSpec]:
        return [wh.to_spec() for wh in self.working_hours]


class CanteenUpdate(BaseModel):
    """Fields omitted from the body stay untouched; explicit nulls are rejected."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1, le=1000)
    working_hours: Optional[List[WorkingHourIn]] = Field(default=None, alias="workingHours")

    @field_validator("name", "location", "capacity", "working_hours", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    def to_patch(self) -> CanteenPatch:
        provided = self.model_fields_set
        return CanteenPatch(
            name=self.name if "name" in provided else UNSET,
            location=self.location if "location" in provided else UNSET,
            capacity=self.capacity if "capacity" in provided else UNSET,
            working_hours=(
                [wh.to_spec() for wh in self.working_hours]
                if "working_hours" in provided and self.working_hours is not None
                else UNSET
            ),
        )


class CanteenRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    location: str
    capacity: int
    working_hours: List[WorkingHourRead] = Field(alias="workingHours")

    @classmethod
    def from_db(cls, *, canteen: Canteen) -> "CanteenRead":
        return cls(
            id=canteen.id,
            name=canteen.name,
            location=canteen.location,
            capacity=canteen.capacity,
            working_hours=[WorkingHourRead.from_db(working_hour=wh) for wh in canteen.working_hours],
        )


class SlotRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: date
    meal: Meal
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")
    remaining_capacity: int = Field(alias="remainingCapacity", ge=0)

    @field_serializer("start_time", "end_time")
    def _ser_time(self, value: time) -> str:
        return format_time(value)

    @classmethod
    def from_availability(cls, *, slot: SlotAvailability) -> "SlotRead":
        return cls(
            date=slot.window.date,
            meal=slot.window.meal,
            start_time=slot.window.start,
            end_time=slot.window.end,
            remaining_capacity=slot.remaining,
        )


class CanteenStatusRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    canteen_id: str = Field(alias="canteenId")
    slots: List[SlotRead]

    @classmethod
    def from_status(cls, *, status: CanteenStatus) -> "CanteenStatusRead":
        return cls(
            canteen_id=status.canteen_id,
            slots=[SlotRead.from_availability(slot=slot) for slot in status.slots],
        )


class ReservationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    canteen_id: str = Field(alias="canteenId")
    date: date
    time: time
    duration: int


class ReservationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: ReservationStatus
    student_id: str = Field(alias="studentId")
    canteen_id: str = Field(alias="canteenId")
    date: date
    time: time
    duration: int

    @field_serializer("time")
    def _ser_time(self, value: time) -> str:
        return format_time(value)

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            id=reservation.id,
            status=reservation.status,
            student_id=reservation.student_id,
            canteen_id=reservation.canteen_id,
            date=reservation.date,
            time=reservation.time,
            duration=reservation.duration,
        )
