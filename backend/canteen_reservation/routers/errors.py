from typing import Any

from fastapi import HTTPException, status

from ..domain.errors import (
    BusinessRuleFailure,
    ConflictError,
    DomainError,
    NotFoundFailure,
    NotOwnerError,
    OutsideWorkingHoursError,
    PastDateError,
    StatusQueryError,
    StoreError,
    ValidationFailure,
    WorkingHoursError,
)

# first matching class wins
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (NotOwnerError, status.HTTP_403_FORBIDDEN),
    (NotFoundFailure, status.HTTP_404_NOT_FOUND),
    (PastDateError, 422),
    (OutsideWorkingHoursError, 422),
    (BusinessRuleFailure, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: DomainError) -> int:
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http(exc: DomainError) -> HTTPException:
    detail: dict[str, Any] = {"code": exc.code, "message": exc.message}
    if isinstance(exc, (WorkingHoursError, StatusQueryError)):
        detail["errors"] = exc.violations
    return HTTPException(status_code=status_for(exc), detail=detail)
