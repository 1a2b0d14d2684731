from ..domain.errors import DuplicateEmailError, InvalidIdentifierError, StudentNotFoundError
from ..domain.repositories import StudentRepository
from ..domain.services import parse_id
from ..models import Student


async def create_student(
    student_repo: StudentRepository,
    *,
    name: str,
    email: str,
    is_admin: bool = False,
) -> Student:
    if await student_repo.get_by_email(email) is not None:
        raise DuplicateEmailError("Email already in use.")
    return await student_repo.create(name=name, email=email, is_admin=is_admin)


async def get_student(student_repo: StudentRepository, *, student_id: str) -> Student:
    student = await student_repo.get(parse_id(student_id, what="student id"))
    if student is None:
        raise StudentNotFoundError("student not found")
    return student


async def is_admin(student_repo: StudentRepository, *, student_id: str) -> bool:
    """Admin check used by the canteen management routes."""
    try:
        student = await student_repo.get(parse_id(student_id, what="student id"))
    except InvalidIdentifierError:
        return False
    return student is not None and student.is_admin
