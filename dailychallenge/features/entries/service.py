"""
Daily entry submission.

One submission scores the day with the participant's stored streak, writes
the entry, refreshes streaks when the day is completed and recomputes the
participant's total points. All writes share one transaction and run while
holding the participant's lock.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dailychallenge.core.database import get_db_session
from dailychallenge.core.errors import (
    AppError,
    LockedError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)
from dailychallenge.core.locks import participant_locks
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges import persistence as challenge_store
from dailychallenge.features.entries import persistence as entry_store
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.features.scoring.engine import calculate_entry_score
from dailychallenge.features.streaks.tracker import compute_streaks, local_today
from dailychallenge.models.entry import DailyEntry, SubmissionResult


def submit_entry(
    *,
    user_id: str,
    participant_id: str,
    metric_data: Dict[str, Any],
    is_completed: bool,
    notes: Optional[str] = None,
    entry_date: Optional[date] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SubmissionResult:
    """Save one day's entry for a participant owned by user_id."""
    try:
        with participant_locks.hold(participant_id):
            with get_db_session() as session:
                result = _submit(
                    session,
                    user_id=user_id,
                    participant_id=participant_id,
                    metric_data=metric_data,
                    is_completed=is_completed,
                    notes=notes,
                    entry_date=entry_date,
                    today=today or local_today(),
                    now=now or datetime.now(timezone.utc),
                )
    except AppError as exc:
        log_event(
            "warning",
            "entry.rejected",
            user_id=user_id,
            participant_id=participant_id,
            error_code=exc.code,
            extra={"reason": exc.message},
        )
        return SubmissionResult(success=False, failure=exc)
    except SQLAlchemyError as exc:
        failure = PersistenceError(f"Failed to save entry: {exc}", cause=exc)
        log_event(
            "error",
            "entry.persistence_failed",
            user_id=user_id,
            participant_id=participant_id,
            error_code=failure.code,
            extra={"cause": exc},
        )
        return SubmissionResult(success=False, failure=failure)

    log_event(
        "info",
        "entry.submitted",
        user_id=user_id,
        challenge_id=result.participant.challenge_id,
        participant_id=participant_id,
        event_type="entry.submitted",
        extra={
            "entry_date": result.entry.entry_date.isoformat(),
            "points_earned": result.score.base_points,
            "bonus_points": result.score.bonus_points,
            "current_streak": result.participant.current_streak,
        },
    )
    return result


def _submit(
    session: Session,
    *,
    user_id: str,
    participant_id: str,
    metric_data: Dict[str, Any],
    is_completed: bool,
    notes: Optional[str],
    entry_date: Optional[date],
    today: date,
    now: datetime,
) -> SubmissionResult:
    participant = participant_store.get_participant(session, participant_id)
    if participant is None:
        raise NotFoundError("Participant not found")
    if participant.user_id != user_id:
        raise UnauthorizedError("Not authorized to submit entries for this participant")

    challenge = challenge_store.get_challenge(session, participant.challenge_id)
    if challenge is None:
        raise NotFoundError("Challenge not found")

    target_date = entry_date or today
    if target_date > today:
        raise ValidationError("Cannot submit an entry for a future date")
    if not isinstance(metric_data, dict):
        raise ValidationError("metric_data must be an object keyed by metric id")

    existing = entry_store.get_entry_for_date(session, participant_id, target_date)
    if existing is not None and existing.is_locked:
        raise LockedError("Entry is locked and cannot be modified")

    score = calculate_entry_score(
        challenge.metrics,
        metric_data,
        challenge.bonus,
        participant.current_streak,
    )

    entry = DailyEntry(
        entry_id=existing.entry_id if existing else str(uuid4()),
        participant_id=participant_id,
        entry_date=target_date,
        metric_data=metric_data,
        is_completed=is_completed,
        is_locked=challenge.lock_entries_after_day,
        notes=notes or None,
        points_earned=score.base_points,
        bonus_points=score.bonus_points,
        submitted_at=now,
    )
    if existing is not None:
        entry_store.update_entry(session, entry)
    else:
        entry_store.insert_entry(session, entry)

    if is_completed:
        streaks = compute_streaks(
            entry_store.completed_dates(session, participant_id),
            today=today,
            previous_longest=participant.longest_streak,
        )
        participant_store.update_streaks(
            session,
            participant_id,
            current_streak=streaks.current_streak,
            longest_streak=streaks.longest_streak,
        )
        participant.current_streak = streaks.current_streak
        participant.longest_streak = streaks.longest_streak

    participant.total_points = entry_store.sum_points(session, participant_id)
    participant_store.update_total_points(session, participant_id, participant.total_points)

    return SubmissionResult(success=True, entry=entry, participant=participant, score=score)


def list_entries(
    *,
    user_id: str,
    challenge_id: str,
    entry_date: Optional[date] = None,
) -> List[DailyEntry]:
    """The acting user's entries in a challenge, oldest first."""
    with get_db_session() as session:
        participant = participant_store.get_participant_for_user(session, challenge_id, user_id)
        if participant is None:
            raise NotFoundError("Not participating in this challenge")
        return entry_store.list_entries(session, participant.participant_id, entry_date=entry_date)
