import logging
from datetime import date, time
from typing import Optional

from ..domain.errors import (
    BusinessRuleFailure,
    CanteenNotFoundError,
    NotOwnerError,
    ReservationNotFoundError,
)
from ..domain.intervals import reservation_interval
from ..domain.repositories import CanteenRepository, ReservationRepository
from ..domain.services import AdmissionSnapshot, parse_id, validate_admission, validate_request_shape
from ..models import Reservation, ReservationStatus
from ..utils.time import utc_now_naive, utc_today

logger = logging.getLogger(__name__)


async def create_reservation(
    canteen_repo: CanteenRepository,
    res_repo: ReservationRepository,
    *,
    student_id: str,
    canteen_id: str,
    day: date,
    start: time,
    duration: int,
    today: Optional[date] = None,
) -> Reservation:
    """Admit one reservation request or raise the first rule it breaks.

    Must run inside a single transaction: the canteen row is locked for the
    rest of it, so concurrent admissions for the same canteen are serialized.
    """
    student_id = parse_id(student_id, what="student id")
    canteen_id = parse_id(canteen_id, what="canteen id")
    validate_request_shape(day=day, start=start, duration=duration, today=today or utc_today())

    canteen = await canteen_repo.get_for_update(canteen_id)
    if canteen is None:
        raise CanteenNotFoundError(f"canteen {canteen_id} not found")

    slot_start, slot_end = reservation_interval(start, duration)
    snapshot = AdmissionSnapshot(
        capacity=canteen.capacity,
        working_hours=canteen.working_hours,
        student_has_overlap=await res_repo.student_has_overlap(student_id, day, slot_start, slot_end),
        reserved=await res_repo.count_overlapping(canteen.id, day, slot_start, slot_end),
    )
    try:
        validate_admission(snapshot, start=start, duration=duration)
    except BusinessRuleFailure as exc:
        logger.info("reservation rejected for canteen %s on %s %s: %s", canteen.id, day, start, exc.code)
        raise

    return await res_repo.create(
        student_id=student_id,
        canteen_id=canteen.id,
        day=day,
        start=start,
        duration=duration,
        status=ReservationStatus.ACTIVE,
    )


async def cancel_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: str,
    student_id: str,
) -> tuple[Reservation, ReservationStatus]:
    """Cancel a reservation owned by ``student_id``.

    Returns the reservation and the status it had before the call.
    """
    reservation_id = parse_id(reservation_id, what="reservation id")
    student_id = parse_id(student_id, what="student id")
    reservation = await res_repo.get_for_update(reservation_id)
    if reservation is None:
        raise ReservationNotFoundError("reservation not found")
    if reservation.student_id != student_id:
        raise NotOwnerError("reservation belongs to another student")
    previous = reservation.status
    # Idempotent: already cancelled returns as-is
    if previous == ReservationStatus.CANCELLED:
        return reservation, previous

    reservation.status = ReservationStatus.CANCELLED
    reservation.updated_at = utc_now_naive()
    updated = await res_repo.save(reservation)
    return updated, previous


async def get_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: str,
) -> Reservation:
    reservation = await res_repo.get(parse_id(reservation_id, what="reservation id"))
    if reservation is None:
        raise ReservationNotFoundError("reservation not found")
    return reservation


async def list_student_reservations(
    res_repo: ReservationRepository,
    *,
    student_id: str,
) -> list[Reservation]:
    return await res_repo.list_by_student(parse_id(student_id, what="student id"))
