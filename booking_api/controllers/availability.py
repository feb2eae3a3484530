from fastapi import APIRouter

from booking_api.dependencies import AvailabilityDep, CurrentUser
from booking_api.models.availability import Availability, AvailabilityUpdate

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=Availability)
async def get_availability(user: CurrentUser, service: AvailabilityDep) -> Availability:
    return await service.get_or_create(user.id)


@router.put("", response_model=Availability)
async def update_availability(
    req: AvailabilityUpdate,
    user: CurrentUser,
    service: AvailabilityDep,
) -> Availability:
    return await service.replace(user.id, req.days)
