import logging

from fastapi import APIRouter

from booking_api.dependencies import CurrentUser, Directory, Events
from booking_api.models.events import (
    Event,
    EventCreate,
    EventResponse,
    EventUpdate,
    MessageResponse,
)
from booking_api.models.users import User
from booking_api.scheduling.lifecycle import populate_participants

logger = logging.getLogger("booking_api.events")
router = APIRouter(prefix="/events", tags=["events"])


def _hide_password(events: list[EventResponse], viewer: User) -> list[EventResponse]:
    for event in events:
        if event.host_id != viewer.id:
            event.password = None
    return events


async def _render(event: Event, viewer: User, directory: Directory) -> EventResponse:
    rendered = await populate_participants([event], directory, EventResponse)
    return _hide_password(rendered, viewer)[0]


@router.get("", response_model=list[EventResponse])
async def list_events(user: CurrentUser, manager: Events, directory: Directory) -> list[EventResponse]:
    events = await manager.list_for_user(user.id)
    logger.info("GET /events user=%s count=%d", user.id, len(events))
    return _hide_password(await populate_participants(events, directory, EventResponse), user)


@router.post("", status_code=201, response_model=EventResponse)
async def create_event(
    req: EventCreate,
    user: CurrentUser,
    manager: Events,
    directory: Directory,
) -> EventResponse:
    logger.info("POST /events user=%s start=%s end=%s", user.id, req.start_time, req.end_time)
    event = await manager.create(user, req)
    return await _render(event, user, directory)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    req: EventUpdate,
    user: CurrentUser,
    manager: Events,
    directory: Directory,
) -> EventResponse:
    logger.info("PUT /events/%s user=%s", event_id, user.id)
    event = await manager.update(user, event_id, req)
    return await _render(event, user, directory)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(event_id: str, user: CurrentUser, manager: Events) -> MessageResponse:
    logger.info("DELETE /events/%s user=%s", event_id, user.id)
    await manager.delete(user, event_id)
    return MessageResponse(message="Event deleted and associated bookings updated to Canceled")


@router.patch("/{event_id}/toggle", response_model=MessageResponse)
async def toggle_event_active(event_id: str, user: CurrentUser, manager: Events) -> MessageResponse:
    event = await manager.toggle_active(user, event_id)
    return MessageResponse(message=f"Event is now {'Active' if event.is_active else 'Inactive'}")
