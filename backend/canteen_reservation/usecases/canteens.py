import logging
from typing import Sequence

from ..domain.errors import CanteenNotFoundError, DuplicateCanteenNameError, InvalidArgumentError
from ..domain.repositories import CanteenRepository, ReservationRepository
from ..domain.services import (
    UNSET,
    CanteenPatch,
    WorkingHourSpec,
    canteen_name_key,
    ensure_working_hours,
    parse_id,
)
from ..models import Canteen

logger = logging.getLogger(__name__)


async def create_canteen(
    canteen_repo: CanteenRepository,
    *,
    name: str,
    location: str,
    capacity: int,
    working_hours: Sequence[WorkingHourSpec],
) -> Canteen:
    if capacity < 1:
        raise InvalidArgumentError("capacity must be >= 1")
    ensure_working_hours(working_hours)
    name_key = canteen_name_key(name)
    if await canteen_repo.get_by_name_key(name_key) is not None:
        raise DuplicateCanteenNameError("Canteen with same name already exists")
    return await canteen_repo.create(
        name=name.strip(),
        name_key=name_key,
        location=location,
        capacity=capacity,
        working_hours=working_hours,
    )


async def get_canteen(canteen_repo: CanteenRepository, *, canteen_id: str) -> Canteen:
    canteen = await canteen_repo.get(parse_id(canteen_id, what="canteen id"))
    if canteen is None:
        raise CanteenNotFoundError(f"canteen {canteen_id} not found")
    return canteen


async def list_canteens(canteen_repo: CanteenRepository) -> list[Canteen]:
    return await canteen_repo.list_all()


async def update_canteen(
    canteen_repo: CanteenRepository,
    *,
    canteen_id: str,
    patch: CanteenPatch,
) -> Canteen:
    canteen = await canteen_repo.get_for_update(parse_id(canteen_id, what="canteen id"))
    if canteen is None:
        raise CanteenNotFoundError(f"canteen {canteen_id} not found")

    if patch.working_hours is not UNSET:
        ensure_working_hours(patch.working_hours)
    if patch.capacity is not UNSET and patch.capacity < 1:
        raise InvalidArgumentError("capacity must be >= 1")
    if patch.name is not UNSET:
        name_key = canteen_name_key(patch.name)
        other = await canteen_repo.get_by_name_key(name_key)
        if other is not None and other.id != canteen.id:
            raise DuplicateCanteenNameError("Canteen with same name already exists")
        canteen.name = patch.name.strip()
        canteen.name_key = name_key
    if patch.location is not UNSET:
        canteen.location = patch.location
    if patch.capacity is not UNSET:
        canteen.capacity = patch.capacity
    if patch.working_hours is not UNSET:
        await canteen_repo.replace_working_hours(canteen, patch.working_hours)
    saved = await canteen_repo.save(canteen)
    logger.info("canteen %s updated: %s", saved.id, ", ".join(sorted(patch.provided())))
    return saved


async def delete_canteen(
    canteen_repo: CanteenRepository,
    res_repo: ReservationRepository,
    *,
    canteen_id: str,
) -> int:
    """Cancel the canteen's active reservations, then remove the canteen.

    Both steps belong to the caller's transaction; returns how many
    reservations were cancelled.
    """
    canteen = await canteen_repo.get_for_update(parse_id(canteen_id, what="canteen id"))
    if canteen is None:
        raise CanteenNotFoundError(f"canteen {canteen_id} not found")
    cancelled = await res_repo.cancel_active_for_canteen(canteen.id)
    await canteen_repo.delete(canteen)
    logger.info("canteen %s deleted, %d active reservations cancelled", canteen.id, cancelled)
    return cancelled
