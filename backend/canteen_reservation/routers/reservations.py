import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_student_id, get_session
from ..domain.errors import ConflictError, DomainError
from ..infrastructure.repositories import SqlAlchemyCanteenRepository, SqlAlchemyReservationRepository
from ..models import ReservationStatus
from ..schemas import ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log
from .errors import to_http

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["reservations"])


def _audit(**kwargs: Any) -> None:
    try:
        emit_audit_log(**kwargs)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    student_id: str = Depends(get_current_student_id),
) -> ReservationRead:
    canteen_repo = SqlAlchemyCanteenRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            reservation = await reservation_usecase.create_reservation(
                canteen_repo,
                res_repo,
                student_id=student_id,
                canteen_id=payload.canteen_id,
                day=payload.date,
                start=payload.time,
                duration=payload.duration,
            )
    except DomainError as exc:
        raise to_http(exc) from exc
    except (IntegrityError, OperationalError) as exc:
        logger.warning("reservation commit lost a race for canteen %s: %s", payload.canteen_id, exc)
        raise to_http(ConflictError("slot changed concurrently, retry with fresh availability")) from exc

    _audit(
        action="reservation.created",
        initiator="student",
        reservation_id=reservation.id,
        canteen_id=reservation.canteen_id,
        student_id=reservation.student_id,
        reservation_date=reservation.date,
        reservation_time=reservation.time,
        duration=reservation.duration,
        status_to=reservation.status,
    )
    return ReservationRead.from_db(reservation=reservation)


@router.get("/reservations/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    reservation_id: str,
    session: AsyncSession = Depends(get_session),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        reservation = await reservation_usecase.get_reservation(res_repo, reservation_id=reservation_id)
    except DomainError as exc:
        raise to_http(exc) from exc
    return ReservationRead.from_db(reservation=reservation)


@router.delete("/reservations/{reservation_id}", response_model=ReservationRead)
async def cancel_reservation(
    reservation_id: str,
    session: AsyncSession = Depends(get_session),
    student_id: str = Depends(get_current_student_id),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            reservation, previous = await reservation_usecase.cancel_reservation(
                res_repo,
                reservation_id=reservation_id,
                student_id=student_id,
            )
    except DomainError as exc:
        raise to_http(exc) from exc

    if previous != ReservationStatus.CANCELLED:
        _audit(
            action="reservation.cancelled",
            initiator="student",
            reservation_id=reservation.id,
            canteen_id=reservation.canteen_id,
            student_id=reservation.student_id,
            reservation_date=reservation.date,
            reservation_time=reservation.time,
            duration=reservation.duration,
            status_from=previous,
            status_to=reservation.status,
        )
    return ReservationRead.from_db(reservation=reservation)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    session: AsyncSession = Depends(get_session),
    student_id: str = Depends(get_current_student_id),
) -> list[ReservationRead]:
    res_repo = SqlAlchemyReservationRepository(session)
    rows = await reservation_usecase.list_student_reservations(res_repo, student_id=student_id)
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]
