from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from dailychallenge.core.database import get_db_session
from dailychallenge.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from dailychallenge.core.locks import participant_locks
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges import persistence as challenge_store
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.models.participant import Participant


def join_challenge(
    *,
    user_id: str,
    challenge_id: Optional[str] = None,
    invite_code: Optional[str] = None,
) -> Participant:
    """
    Enrol a user in a challenge.

    Public challenges can be joined by id; private ones only by invite code.
    """
    if not challenge_id and not invite_code:
        raise ValidationError("Provide a challenge_id or an invite_code")

    with get_db_session() as session:
        if invite_code:
            challenge = challenge_store.get_challenge_by_invite_code(session, invite_code.strip().upper())
            if challenge is None:
                raise NotFoundError("Invalid invite code")
        else:
            challenge = challenge_store.get_challenge(session, challenge_id)
            if challenge is None:
                raise NotFoundError("Challenge not found")
            if not challenge.is_public:
                raise UnauthorizedError("This challenge is private; join with its invite code")

        if participant_store.get_participant_for_user(session, challenge.challenge_id, user_id):
            raise ConflictError("Already participating in this challenge")

        participant = Participant(
            participant_id=str(uuid4()),
            challenge_id=challenge.challenge_id,
            user_id=user_id,
            joined_at=datetime.now(timezone.utc),
        )
        participant_store.insert_participant(session, participant)

    log_event(
        "info",
        "participant.joined",
        user_id=user_id,
        challenge_id=participant.challenge_id,
        participant_id=participant.participant_id,
        event_type="participant.joined",
    )
    return participant


def get_participation(*, user_id: str, challenge_id: str) -> Participant:
    with get_db_session() as session:
        participant = participant_store.get_participant_for_user(session, challenge_id, user_id)
    if participant is None:
        raise NotFoundError("Not participating in this challenge")
    return participant


def leave_challenge(*, user_id: str, challenge_id: str) -> None:
    """Remove the acting user from a challenge along with their entries."""
    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        if challenge.creator_id == user_id:
            raise ValidationError("The challenge creator cannot leave their own challenge")
        participant = participant_store.get_participant_for_user(session, challenge_id, user_id)
        if participant is None:
            raise NotFoundError("Not participating in this challenge")
        participant_store.delete_participant(session, participant.participant_id)
    participant_locks.discard(participant.participant_id)

    log_event("info", "participant.left", user_id=user_id, challenge_id=challenge_id, participant_id=participant.participant_id)


def remove_participant(*, user_id: str, challenge_id: str, participant_id: str) -> None:
    """Creator-only removal of another participant."""
    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        if challenge.creator_id != user_id:
            raise UnauthorizedError("Only the challenge creator can remove participants")
        participant = participant_store.get_participant(session, participant_id)
        if participant is None or participant.challenge_id != challenge_id:
            raise NotFoundError("Participant not found in this challenge")
        if participant.user_id == challenge.creator_id:
            raise ValidationError("Cannot remove the challenge creator")
        participant_store.delete_participant(session, participant.participant_id)
    participant_locks.discard(participant_id)

    log_event(
        "info",
        "participant.removed",
        user_id=user_id,
        challenge_id=challenge_id,
        participant_id=participant_id,
        event_type="participant.removed",
    )

