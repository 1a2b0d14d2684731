from datetime import date, time
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_session, require_admin
from ..domain.errors import DomainError, DuplicateCanteenNameError, StatusQueryError
from ..domain.services import parse_id, validate_status_request
from ..infrastructure.repositories import SqlAlchemyCanteenRepository, SqlAlchemyReservationRepository
from ..schemas import CanteenCreate, CanteenRead, CanteenStatusRead, CanteenUpdate
from ..usecases import availability as availability_usecase
from ..usecases import canteens as canteen_usecase
from ..utils.audit_log import emit_audit_log
from .errors import to_http

router = APIRouter(prefix="/canteens", tags=["canteens"])

STATUS_NOTE = (
    "Remaining capacity is computed per slot at read time; slots of one response "
    "may reflect different moments if reservations are made while it is built."
)


class StatusQuery:
    def __init__(
        self,
        start_date: date = Query(..., alias="startDate"),
        end_date: date = Query(..., alias="endDate"),
        start_time: time = Query(..., alias="startTime"),
        end_time: time = Query(..., alias="endTime"),
        duration: int = Query(...),
    ) -> None:
        self.start_date = start_date
        self.end_date = end_date
        self.start_time = start_time
        self.end_time = end_time
        self.duration = duration

    def validate(self) -> None:
        errors = validate_status_request(
            start_date=self.start_date,
            end_date=self.end_date,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            max_days=get_settings().status_max_days,
        )
        if errors:
            raise to_http(StatusQueryError(errors))


@router.post("", response_model=CanteenRead, status_code=status.HTTP_201_CREATED)
async def create_canteen(
    payload: CanteenCreate,
    session: AsyncSession = Depends(get_session),
    _admin_id: str = Depends(require_admin),
) -> CanteenRead:
    canteen_repo = SqlAlchemyCanteenRepository(session)
    try:
        async with session.begin():
            canteen = await canteen_usecase.create_canteen(
                canteen_repo,
                name=payload.name,
                location=payload.location,
                capacity=payload.capacity,
                working_hours=payload.specs(),
            )
    except DomainError as exc:
        raise to_http(exc) from exc
    except IntegrityError as exc:
        raise to_http(DuplicateCanteenNameError("Canteen with same name already exists")) from exc
    return CanteenRead.from_db(canteen=canteen)


@router.get("", response_model=List[CanteenRead])
async def list_canteens(session: AsyncSession = Depends(get_session)) -> list[CanteenRead]:
    canteens = await canteen_usecase.list_canteens(SqlAlchemyCanteenRepository(session))
    return [CanteenRead.from_db(canteen=canteen) for canteen in canteens]


@router.get("/status", response_model=List[CanteenStatusRead], description=STATUS_NOTE)
async def all_canteens_status(
    query: StatusQuery = Depends(),
    session: AsyncSession = Depends(get_session),
) -> list[CanteenStatusRead]:
    query.validate()
    try:
        items = await availability_usecase.all_canteens_status(
            SqlAlchemyCanteenRepository(session),
            SqlAlchemyReservationRepository(session),
            start_date=query.start_date,
            end_date=query.end_date,
            start_time=query.start_time,
            end_time=query.end_time,
            duration=query.duration,
        )
    except DomainError as exc:
        raise to_http(exc) from exc
    return [CanteenStatusRead.from_status(status=item) for item in items]


@router.get("/{canteen_id}", response_model=CanteenRead)
async def get_canteen(canteen_id: str, session: AsyncSession = Depends(get_session)) -> CanteenRead:
    try:
        canteen = await canteen_usecase.get_canteen(SqlAlchemyCanteenRepository(session), canteen_id=canteen_id)
    except DomainError as exc:
        raise to_http(exc) from exc
    return CanteenRead.from_db(canteen=canteen)


@router.get("/{canteen_id}/status", response_model=CanteenStatusRead, description=STATUS_NOTE)
async def canteen_status(
    canteen_id: str,
    query: StatusQuery = Depends(),
    session: AsyncSession = Depends(get_session),
) -> CanteenStatusRead:
    query.validate()
    try:
        result = await availability_usecase.canteen_status(
            SqlAlchemyCanteenRepository(session),
            SqlAlchemyReservationRepository(session),
            canteen_id=canteen_id,
            start_date=query.start_date,
            end_date=query.end_date,
            start_time=query.start_time,
            end_time=query.end_time,
            duration=query.duration,
        )
    except DomainError as exc:
        raise to_http(exc) from exc
    return CanteenStatusRead.from_status(status=result)


@router.put("/{canteen_id}", response_model=CanteenRead)
async def update_canteen(
    canteen_id: str,
    payload: CanteenUpdate,
    session: AsyncSession = Depends(get_session),
    _admin_id: str = Depends(require_admin),
) -> CanteenRead:
    canteen_repo = SqlAlchemyCanteenRepository(session)
    try:
        async with session.begin():
            canteen = await canteen_usecase.update_canteen(
                canteen_repo,
                canteen_id=canteen_id,
                patch=payload.to_patch(),
            )
    except DomainError as exc:
        raise to_http(exc) from exc
    except IntegrityError as exc:
        raise to_http(DuplicateCanteenNameError("Canteen with same name already exists")) from exc
    return CanteenRead.from_db(canteen=canteen)


@router.delete("/{canteen_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_canteen(
    canteen_id: str,
    session: AsyncSession = Depends(get_session),
    admin_id: str = Depends(require_admin),
) -> Response:
    canteen_repo = SqlAlchemyCanteenRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            cancelled = await canteen_usecase.delete_canteen(canteen_repo, res_repo, canteen_id=canteen_id)
    except DomainError as exc:
        raise to_http(exc) from exc

    try:
        emit_audit_log(
            action="canteen.deleted",
            initiator="admin",
            canteen_id=parse_id(canteen_id),
            student_id=admin_id,
            status_from="Active",
            status_to="Cancelled",
            extra={"reservations_cancelled": cancelled},
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
