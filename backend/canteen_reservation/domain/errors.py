class DomainError(Exception):
    """Base class for every failure the reservation engine reports."""

    code = "DomainError"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# Failure kinds


class ValidationFailure(DomainError):
    code = "ValidationFailure"


class NotFoundFailure(DomainError):
    code = "NotFound"


class BusinessRuleFailure(DomainError):
    code = "BusinessRuleFailure"


class ConflictError(DomainError):
    """Concurrent writer won the race; retry with fresh availability data."""

    code = "Conflict"


class StoreError(DomainError):
    code = "StoreFailure"


# Validation


class InvalidIdentifierError(ValidationFailure):
    code = "InvalidIdentifier"


class InvalidArgumentError(ValidationFailure):
    code = "InvalidArgument"


class StatusQueryError(InvalidArgumentError):
    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


class InvalidDurationError(ValidationFailure):
    code = "InvalidDuration"


class InvalidAlignmentError(ValidationFailure):
    code = "InvalidAlignment"


class WorkingHoursError(ValidationFailure):
    code = "InvalidWorkingHours"

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


# Not found


class CanteenNotFoundError(NotFoundFailure):
    code = "CanteenNotFound"


class ReservationNotFoundError(NotFoundFailure):
    code = "NotFound"


class StudentNotFoundError(NotFoundFailure):
    code = "StudentNotFound"


class NotOwnerError(DomainError):
    code = "NotOwner"


# Business rules


class PastDateError(BusinessRuleFailure):
    code = "PastDate"


class OutsideWorkingHoursError(BusinessRuleFailure):
    code = "OutsideWorkingHours"


class StudentDoubleBookedError(BusinessRuleFailure):
    code = "StudentDoubleBooked"


class CapacityExceededError(BusinessRuleFailure):
    code = "CapacityExceeded"


class DuplicateCanteenNameError(BusinessRuleFailure):
    code = "DuplicateCanteenName"


class DuplicateEmailError(BusinessRuleFailure):
    code = "DuplicateEmail"
