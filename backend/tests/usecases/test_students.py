from datetime import datetime
from typing import Dict, Optional

import pytest
from canteen_reservation.domain.errors import DuplicateEmailError, StudentNotFoundError
from canteen_reservation.models import Student, new_id
from canteen_reservation.usecases import students as uc


class FakeStudentRepo:
    def __init__(self) -> None:
        self.students: Dict[str, Student] = {}

    async def get(self, student_id: str) -> Optional[Student]:
        return self.students.get(student_id)

    async def get_by_email(self, email: str) -> Optional[Student]:
        return next((s for s in self.students.values() if s.email == email), None)

    async def create(self, *, name: str, email: str, is_admin: bool) -> Student:
        student = Student(id=new_id(), name=name, email=email, is_admin=is_admin, created_at=datetime(2030, 1, 1))
        self.students[student.id] = student
        return student


@pytest.mark.asyncio
async def test_create_and_get_student() -> None:
    repo = FakeStudentRepo()
    student = await uc.create_student(repo, name="Ana", email="ana@uni.test")
    assert student.is_admin is False
    assert await uc.get_student(repo, student_id=student.id) is student


@pytest.mark.asyncio
async def test_duplicate_email_rejected() -> None:
    repo = FakeStudentRepo()
    await uc.create_student(repo, name="Ana", email="ana@uni.test")
    with pytest.raises(DuplicateEmailError):
        await uc.create_student(repo, name="Other", email="ana@uni.test")


@pytest.mark.asyncio
async def test_get_unknown_student() -> None:
    with pytest.raises(StudentNotFoundError):
        await uc.get_student(FakeStudentRepo(), student_id=new_id())


@pytest.mark.asyncio
async def test_is_admin() -> None:
    repo = FakeStudentRepo()
    admin = await uc.create_student(repo, name="Root", email="root@uni.test", is_admin=True)
    plain = await uc.create_student(repo, name="Ana", email="ana@uni.test")
    assert await uc.is_admin(repo, student_id=admin.id) is True
    assert await uc.is_admin(repo, student_id=plain.id) is False
    assert await uc.is_admin(repo, student_id=new_id()) is False
    assert await uc.is_admin(repo, student_id="not-an-id") is False
