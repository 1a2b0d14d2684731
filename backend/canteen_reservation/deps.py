from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .infrastructure.repositories import SqlAlchemyStudentRepository
from .models import Student
from .usecases import students as student_usecase
from .utils.auth import TokenError, decode_access_token

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def get_current_student_id(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> str:
    if authorization is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header required", headers=_CHALLENGE)
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bearer token required", headers=_CHALLENGE)

    settings = get_settings()
    try:
        student_id = decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except TokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token", headers=_CHALLENGE) from exc

    try:
        exists = await session.scalar(select(Student.id).where(Student.id == student_id))
    except SQLAlchemyError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="identity lookup failed") from exc
    # release the read transaction so handlers can open their own
    await session.rollback()
    if exists is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown student", headers=_CHALLENGE)
    return student_id


async def require_admin(
    student_id: str = Depends(get_current_student_id),
    session: AsyncSession = Depends(get_session),
) -> str:
    admin = await student_usecase.is_admin(SqlAlchemyStudentRepository(session), student_id=student_id)
    await session.rollback()
    if not admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can manage canteens")
    return student_id

