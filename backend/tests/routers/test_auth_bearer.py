from datetime import timedelta
from typing import Any, AsyncIterator

import pytest
from canteen_reservation.config import get_settings
from canteen_reservation.deps import get_current_student_id, get_session
from canteen_reservation.models import new_id
from canteen_reservation.utils.auth import create_access_token
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

STUDENT_ID = new_id()


class DummySession:
    def __init__(self, student_exists: bool) -> None:
        self.student_exists = student_exists

    async def __aenter__(self) -> "DummySession":  # pragma: no cover
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:  # pragma: no cover
        return False

    async def scalar(self, *args: Any, **kwargs: Any) -> str | None:
        return STUDENT_ID if self.student_exists else None

    async def rollback(self) -> None:
        return None


def _make_app(student_exists: bool) -> TestClient:
    app = FastAPI()

    async def override_get_session() -> AsyncIterator[DummySession]:
        session = DummySession(student_exists=student_exists)
        yield session

    app.dependency_overrides[get_session] = override_get_session

    @app.get("/protected")
    async def protected(student_id: str = Depends(get_current_student_id)) -> dict[str, str]:
        return {"student_id": student_id}

    return TestClient(app)


def _token(secret: str, *, expired: bool = False) -> str:
    delta = timedelta(seconds=-1) if expired else timedelta(minutes=30)
    return create_access_token(student_id=STUDENT_ID, secret=secret, expires_delta=delta)


@pytest.fixture(autouse=True)
def _auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()


def test_protected_accepts_valid_token() -> None:
    client = _make_app(student_exists=True)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 200
    assert res.json()["student_id"] == STUDENT_ID


def test_protected_rejects_missing_header() -> None:
    client = _make_app(student_exists=True)
    res = client.get("/protected")
    assert res.status_code == 401
    assert res.headers.get("www-authenticate", "").lower().startswith("bearer")


def test_protected_rejects_invalid_token() -> None:
    client = _make_app(student_exists=True)
    res = client.get("/protected", headers={"Authorization": "Bearer invalid"})
    assert res.status_code == 401


def test_protected_rejects_token_signed_with_other_secret() -> None:
    client = _make_app(student_exists=True)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('othersecret')}"})
    assert res.status_code == 401


def test_protected_rejects_expired_token() -> None:
    client = _make_app(student_exists=True)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('testsecret', expired=True)}"})
    assert res.status_code == 401


def test_protected_rejects_when_student_not_found() -> None:
    client = _make_app(student_exists=False)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 401
