"""Participant list normalization.

Invitees arrive as ids or emails, either comma-separated or as a list. The
host always ends up first with an ``Accepted`` entry, everyone else starts
``Pending``, and each user appears once.
"""

import logging
from collections.abc import Sequence

from booking_api.models.participants import (
    Participant,
    ParticipantStatus,
    canonical_record_id,
    dedupe_participants,
)
from booking_api.scheduling.ports import UserDirectory

logger = logging.getLogger(__name__)


def normalize_invitees(raw: str | Sequence[str] | None) -> list[str]:
    """Split, trim and drop empty tokens."""
    if raw is None:
        return []
    if isinstance(raw, str):
        tokens = raw.split(",")
    else:
        tokens = [str(x) for x in raw]
    return [t.strip() for t in tokens if t.strip()]


def _unique(tokens: list[str]) -> list[str]:
    return list(dict.fromkeys(tokens))


async def build_participants(
    raw: str | Sequence[str] | None,
    host_id: str,
    directory: UserDirectory,
    host_email: str | None = None,
) -> list[Participant]:
    # Ids in any spelling uuid.UUID accepts collapse to one form.
    tokens = [canonical_record_id(t) or t for t in normalize_invitees(raw)]
    host_email_key = host_email.lower() if host_email else None
    tokens = [
        t for t in tokens
        if t != host_id and (host_email_key is None or t.lower() != host_email_key)
    ]
    tokens = _unique(tokens)
    tokens.insert(0, host_id)
    tokens = _unique(tokens)

    participants: list[Participant] = []
    for token in tokens:
        if token == host_id or canonical_record_id(token) is not None:
            user_id = token
        else:
            user = await directory.find_by_email(token)
            if user is None:
                logger.info("Dropping invitee %s: no user with that email", token)
                continue
            user_id = user.id
        status = ParticipantStatus.ACCEPTED if user_id == host_id else ParticipantStatus.PENDING
        participants.append(Participant(user_id=user_id, status=status))

    return dedupe_participants(participants)
