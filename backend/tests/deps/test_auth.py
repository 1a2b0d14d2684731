from datetime import timedelta
from typing import Any

import pytest
from canteen_reservation.config import Settings, get_settings
from canteen_reservation.deps import get_current_student_id, require_admin
from canteen_reservation.models import Student, new_id
from canteen_reservation.utils.auth import create_access_token
from fastapi import HTTPException
from sqlalchemy.exc import ProgrammingError


class DummySession:
    def __init__(self, student_exists: bool | Exception, *, is_admin: bool = False) -> None:
        self.student_exists = student_exists
        self.is_admin = is_admin
        self.rollbacks = 0

    async def __aenter__(self) -> "DummySession":  # pragma: no cover
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:  # pragma: no cover
        return False

    async def scalar(self, *args: Any, **kwargs: Any) -> str | None:
        if isinstance(self.student_exists, Exception):
            raise self.student_exists
        return "x" if self.student_exists else None

    async def get(self, model: type, ident: str) -> Student | None:
        if not self.student_exists:
            return None
        return Student(id=ident, name="S", email="s@uni.test", is_admin=self.is_admin)

    async def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture(autouse=True)
def _set_auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()


def _token(student_id: str, *, expires_delta: timedelta | None = None) -> str:
    settings = Settings(auth_secret="testsecret")
    return create_access_token(
        student_id=student_id,
        secret=settings.auth_secret,
        algorithm=settings.auth_algorithm,
        expires_delta=expires_delta,
    )


@pytest.mark.asyncio
async def test_get_current_student_id_accepts_valid_token() -> None:
    student_id = new_id()
    session = DummySession(student_exists=True)
    result = await get_current_student_id(authorization=f"Bearer {_token(student_id)}", session=session)  # type: ignore[arg-type]
    assert result == student_id
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_get_current_student_id_normalizes_uuid_case() -> None:
    student_id = new_id()
    session = DummySession(student_exists=True)
    token = _token(student_id.upper())
    result = await get_current_student_id(authorization=f"Bearer {token}", session=session)  # type: ignore[arg-type]
    assert result == student_id


@pytest.mark.asyncio
async def test_get_current_student_id_rejects_missing_header() -> None:
    session = DummySession(student_exists=True)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=None, session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_student_id_rejects_other_scheme() -> None:
    session = DummySession(student_exists=True)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=f"Basic {_token(new_id())}", session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_student_id_rejects_expired_token() -> None:
    token = _token(new_id(), expires_delta=timedelta(seconds=-1))
    session = DummySession(student_exists=True)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=f"Bearer {token}", session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_student_id_rejects_non_uuid_subject() -> None:
    session = DummySession(student_exists=True)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=f"Bearer {_token('42')}", session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_student_id_rejects_when_student_missing() -> None:
    session = DummySession(student_exists=False)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=f"Bearer {_token(new_id())}", session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_student_id_handles_missing_students_table() -> None:
    session = DummySession(student_exists=ProgrammingError("missing", None, Exception("cause")))
    with pytest.raises(HTTPException) as excinfo:
        await get_current_student_id(authorization=f"Bearer {_token(new_id())}", session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 500
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_require_admin_allows_admin() -> None:
    student_id = new_id()
    session = DummySession(student_exists=True, is_admin=True)
    assert await require_admin(student_id=student_id, session=session) == student_id  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_require_admin_rejects_plain_student() -> None:
    session = DummySession(student_exists=True, is_admin=False)
    with pytest.raises(HTTPException) as excinfo:
        await require_admin(student_id=new_id(), session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 403
