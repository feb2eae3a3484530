import logging

from fastapi import APIRouter, Query

from booking_api.dependencies import Bookings, CurrentUser, Directory
from booking_api.models.bookings import (
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    StatusUpdate,
)
from booking_api.models.events import MessageResponse
from booking_api.scheduling.lifecycle import populate_participants

logger = logging.getLogger("booking_api.bookings")
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    user: CurrentUser,
    manager: Bookings,
    directory: Directory,
    status: str | None = Query(None, description="Only bookings with this record status"),
) -> list[BookingResponse]:
    bookings = await manager.list_for_user(user.id, status=status)
    logger.info("GET /bookings user=%s status=%s count=%d", user.id, status, len(bookings))
    return await populate_participants(bookings, directory, BookingResponse)


@router.post("", status_code=201, response_model=BookingResponse)
async def create_booking(
    req: BookingCreate,
    user: CurrentUser,
    manager: Bookings,
    directory: Directory,
) -> BookingResponse:
    logger.info("POST /bookings user=%s start=%s end=%s", user.id, req.start_time, req.end_time)
    booking = await manager.create(user, req)
    return (await populate_participants([booking], directory, BookingResponse))[0]


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    req: BookingUpdate,
    user: CurrentUser,
    manager: Bookings,
    directory: Directory,
) -> BookingResponse:
    logger.info("PUT /bookings/%s user=%s", booking_id, user.id)
    booking = await manager.update(user, booking_id, req)
    return (await populate_participants([booking], directory, BookingResponse))[0]


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking(booking_id: str, user: CurrentUser, manager: Bookings) -> MessageResponse:
    logger.info("DELETE /bookings/%s user=%s", booking_id, user.id)
    await manager.delete(user, booking_id)
    return MessageResponse(message="Booking deleted")


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    req: StatusUpdate,
    user: CurrentUser,
    manager: Bookings,
    directory: Directory,
) -> BookingResponse:
    logger.info("PUT /bookings/%s/status user=%s status=%s", booking_id, user.id, req.status)
    booking = await manager.set_participant_status(user, booking_id, req.status)
    return (await populate_participants([booking], directory, BookingResponse))[0]
