import uuid
from enum import StrEnum
from typing import Iterable, TypeVar

from pydantic import BaseModel

from booking_api.models.users import User


class ParticipantStatus(StrEnum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    CANCELED = "Canceled"


# Targets a participant may move their own entry to.
RSVP_STATUSES = frozenset({ParticipantStatus.ACCEPTED, ParticipantStatus.REJECTED})


class Participant(BaseModel):
    user_id: str
    status: ParticipantStatus = ParticipantStatus.PENDING


class ParticipantView(Participant):
    """Participant entry populated with the user's display fields."""

    user: User | None = None


P = TypeVar("P", bound=Participant)


def dedupe_participants(participants: Iterable[P]) -> list[P]:
    """Keep the first entry per user id, preserving order."""
    unique: dict[str, P] = {}
    for participant in participants:
        if participant.user_id not in unique:
            unique[participant.user_id] = participant
    return list(unique.values())


def new_record_id() -> str:
    return str(uuid.uuid4())


def canonical_record_id(value: str) -> str | None:
    """The lowercase dashed form of a UUID token, or None for anything else."""
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None
