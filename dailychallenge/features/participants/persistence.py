"""Participant storage on the challenge_participants table."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from dailychallenge.core.database import challenge_participants, daily_entries
from dailychallenge.models.participant import Participant


def row_to_participant(row) -> Participant:
    return Participant(
        participant_id=row.id,
        challenge_id=row.challenge_id,
        user_id=row.user_id,
        status=row.status,
        joined_at=row.joined_at,
        current_streak=row.current_streak or 0,
        longest_streak=row.longest_streak or 0,
        total_points=row.total_points or 0,
    )


def get_participant(session: Session, participant_id: str) -> Optional[Participant]:
    row = session.execute(
        select(challenge_participants).where(challenge_participants.c.id == participant_id)
    ).first()
    return row_to_participant(row) if row else None


def get_participant_for_user(session: Session, challenge_id: str, user_id: str) -> Optional[Participant]:
    row = session.execute(
        select(challenge_participants).where(
            challenge_participants.c.challenge_id == challenge_id,
            challenge_participants.c.user_id == user_id,
        )
    ).first()
    return row_to_participant(row) if row else None


def list_participants(session: Session, challenge_id: str) -> List[Participant]:
    rows = session.execute(
        select(challenge_participants)
        .where(challenge_participants.c.challenge_id == challenge_id)
        .order_by(challenge_participants.c.joined_at, challenge_participants.c.id)
    ).all()
    return [row_to_participant(row) for row in rows]


def insert_participant(session: Session, participant: Participant) -> None:
    session.execute(
        insert(challenge_participants).values(
            id=participant.participant_id,
            challenge_id=participant.challenge_id,
            user_id=participant.user_id,
            status=participant.status,
            joined_at=participant.joined_at or datetime.now(timezone.utc),
            current_streak=participant.current_streak,
            longest_streak=participant.longest_streak,
            total_points=participant.total_points,
        )
    )


def update_streaks(session: Session, participant_id: str, *, current_streak: int, longest_streak: int) -> None:
    session.execute(
        update(challenge_participants)
        .where(challenge_participants.c.id == participant_id)
        .values(current_streak=current_streak, longest_streak=longest_streak)
    )


def update_total_points(session: Session, participant_id: str, total_points: int) -> None:
    session.execute(
        update(challenge_participants)
        .where(challenge_participants.c.id == participant_id)
        .values(total_points=total_points)
    )


def delete_participant(session: Session, participant_id: str) -> None:
    # Entries go first; SQLite does not enforce ON DELETE CASCADE by default
    session.execute(delete(daily_entries).where(daily_entries.c.participant_id == participant_id))
    session.execute(delete(challenge_participants).where(challenge_participants.c.id == participant_id))
