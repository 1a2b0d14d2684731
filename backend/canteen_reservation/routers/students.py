from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..domain.errors import DomainError, DuplicateEmailError
from ..infrastructure.repositories import SqlAlchemyStudentRepository
from ..schemas import StudentCreate, StudentRead
from ..usecases import students as student_usecase
from .errors import to_http

router = APIRouter(prefix="/students", tags=["students"])


@router.post("", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    session: AsyncSession = Depends(get_session),
) -> StudentRead:
    student_repo = SqlAlchemyStudentRepository(session)
    try:
        async with session.begin():
            student = await student_usecase.create_student(
                student_repo,
                name=payload.name,
                email=payload.email,
                is_admin=payload.is_admin,
            )
    except DomainError as exc:
        raise to_http(exc) from exc
    except IntegrityError as exc:
        raise to_http(DuplicateEmailError("Email already in use.")) from exc
    return StudentRead.from_db(student=student)


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(student_id: str, session: AsyncSession = Depends(get_session)) -> StudentRead:
    try:
        student = await student_usecase.get_student(SqlAlchemyStudentRepository(session), student_id=student_id)
    except DomainError as exc:
        raise to_http(exc) from exc
    return StudentRead.from_db(student=student)
