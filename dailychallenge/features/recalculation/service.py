"""
Bulk re-scoring after a challenge's scoring rules change.

Every entry is scored again with its participant's present current_streak
(not the streak in effect on the entry's date), then the participant's
total_points is rebuilt. Streaks are never touched. Each participant is its
own transaction and critical section; one participant failing does not stop
the others, and only the aggregate count is reported back.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from dailychallenge.core.database import get_db_session
from dailychallenge.core.errors import AppError, NotFoundError, UnauthorizedError
from dailychallenge.core.locks import participant_locks
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges import persistence as challenge_store
from dailychallenge.features.entries import persistence as entry_store
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.features.scoring.engine import calculate_entry_score
from dailychallenge.models.challenge import Challenge, RecalculationResult
from dailychallenge.models.participant import Participant


def recalculate_all_points(*, user_id: str, challenge_id: str) -> RecalculationResult:
    """Re-score all entries of a challenge; only its creator may do this."""
    try:
        with get_db_session() as session:
            challenge = challenge_store.get_challenge(session, challenge_id)
            if challenge is None:
                raise NotFoundError("Challenge not found")
            if challenge.creator_id != user_id:
                raise UnauthorizedError("Only the challenge creator can recalculate points")
            participants = participant_store.list_participants(session, challenge_id)
    except AppError as exc:
        log_event("warning", "recalculation.rejected", user_id=user_id, challenge_id=challenge_id, error_code=exc.code)
        return RecalculationResult(success=False, error=exc.message, error_code=exc.code)
    except SQLAlchemyError as exc:
        log_event("error", "recalculation.failed", user_id=user_id, challenge_id=challenge_id, extra={"cause": exc})
        return RecalculationResult(success=False, error="Failed to recalculate points", error_code="persistence_error")

    recalculated = 0
    for participant in participants:
        try:
            recalculated += _recalculate_participant(challenge, participant)
        except SQLAlchemyError as exc:
            log_event(
                "error",
                "recalculation.participant_failed",
                user_id=user_id,
                challenge_id=challenge_id,
                participant_id=participant.participant_id,
                extra={"cause": exc},
            )

    log_event(
        "info",
        "recalculation.complete",
        user_id=user_id,
        challenge_id=challenge_id,
        event_type="points.recalculated",
        extra={"recalculated": recalculated, "participants": len(participants)},
    )
    return RecalculationResult(success=True, recalculated=recalculated)


def _recalculate_participant(challenge: Challenge, participant: Participant) -> int:
    with participant_locks.hold(participant.participant_id):
        with get_db_session() as session:
            # Re-read under the lock; a submission may have moved the streak
            current = participant_store.get_participant(session, participant.participant_id)
            if current is None:
                return 0
            entries = entry_store.list_entries(session, current.participant_id)
            for entry in entries:
                score = calculate_entry_score(
                    challenge.metrics,
                    entry.metric_data,
                    challenge.bonus,
                    current.current_streak,
                )
                entry_store.update_entry_points(
                    session,
                    entry.entry_id,
                    points_earned=score.base_points,
                    bonus_points=score.bonus_points,
                )
            total = entry_store.sum_points(session, current.participant_id)
            participant_store.update_total_points(session, current.participant_id, total)
            return len(entries)
