from __future__ import annotations

import datetime as dt
import uuid
from enum import StrEnum

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import Boolean, Date, DateTime, Integer, String, Time


class Base(DeclarativeBase):
    pass


class Meal(StrEnum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class ReservationStatus(StrEnum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


def new_id() -> str:
    return str(uuid.uuid4())


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (UniqueConstraint("email", name="uq_students_email"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class Canteen(Base):
    __tablename__ = "canteens"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="chk_canteens_capacity"),
        UniqueConstraint("name_key", name="uq_canteens_name_key"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # casefolded name; backs the case-insensitive uniqueness rule
    name_key: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    working_hours: Mapped[list["WorkingHour"]] = relationship(
        back_populates="canteen",
        cascade="all, delete-orphan",
        order_by="WorkingHour.position",
        lazy="selectin",
    )


class WorkingHour(Base):
    __tablename__ = "working_hours"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="chk_working_hours_time"),
        UniqueConstraint("canteen_id", "meal", name="uq_working_hours_meal"),
        Index("idx_working_hours_canteen", "canteen_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    canteen_id: Mapped[str] = mapped_column(ForeignKey("canteens.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meal: Mapped[Meal] = mapped_column(
        Enum(
            Meal,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
    )
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)

    canteen: Mapped["Canteen"] = relationship(back_populates="working_hours")


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("duration IN (30, 60)", name="chk_res_duration"),
        Index("idx_res_canteen_date", "canteen_id", "date"),
        Index("idx_res_student_date", "student_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # plain columns: reservations outlive a deleted canteen as Cancelled rows
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    canteen_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    # minutes since midnight, kept alongside ``time`` so overlap filters stay in SQL
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.ACTIVE,
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
