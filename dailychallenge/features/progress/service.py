"""
Progress views: per-day calendar status, participant summary, leaderboard.

Read-only; derived from stored entries and participant state. Streak values
are reported as stored, so they reflect the last completed submission.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from dailychallenge.core.database import get_db_session
from dailychallenge.core.errors import NotFoundError
from dailychallenge.features.challenges import persistence as challenge_store
from dailychallenge.features.entries import persistence as entry_store
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.features.scoring.engine import round_half_up
from dailychallenge.features.streaks.tracker import local_today
from dailychallenge.models.challenge import Challenge
from dailychallenge.models.entry import DailyEntry
from dailychallenge.models.progress import CalendarDay, DayStatus, LeaderboardRow, ProgressSummary


def _submitted_local_date(submitted_at: datetime) -> date:
    # Naive timestamps come back from SQLite and are stored as UTC
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=timezone.utc)
    return submitted_at.astimezone().date()


def day_status(
    day: date,
    entry: Optional[DailyEntry],
    *,
    starts_at: date,
    ends_at: date,
    today: date,
) -> DayStatus:
    if day < starts_at or day > ends_at:
        return "outside"
    if day > today:
        return "future"
    completed = entry is not None and entry.is_completed
    if day == today:
        return "completed" if completed else "today"
    if completed:
        if entry.submitted_at and _submitted_local_date(entry.submitted_at) > entry.entry_date:
            return "late"
        return "completed"
    return "missed"


def elapsed_days(challenge: Challenge, today: date) -> int:
    """Days of the challenge that have started by today, capped at its duration."""
    if today < challenge.starts_at:
        return 0
    return min((today - challenge.starts_at).days + 1, challenge.duration_days)


def _calendar(challenge: Challenge, entries: Dict[date, DailyEntry], today: date) -> List[CalendarDay]:
    days = []
    cursor = challenge.starts_at
    while cursor <= challenge.ends_at:
        entry = entries.get(cursor)
        status = day_status(cursor, entry, starts_at=challenge.starts_at, ends_at=challenge.ends_at, today=today)
        points = None
        if status in ("completed", "late", "missed"):
            points = entry.total_points if entry else 0
        days.append(CalendarDay(day=cursor, status=status, points=points))
        cursor += timedelta(days=1)
    return days


def progress_summary(*, user_id: str, challenge_id: str, today: Optional[date] = None) -> ProgressSummary:
    anchor = today or local_today()
    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        participant = participant_store.get_participant_for_user(session, challenge_id, user_id)
        if participant is None:
            raise NotFoundError("Not participating in this challenge")
        entries = entry_store.list_entries(session, participant.participant_id)

    completed = sum(1 for entry in entries if entry.is_completed)
    elapsed = elapsed_days(challenge, anchor)
    return ProgressSummary(
        challenge_id=challenge_id,
        participant_id=participant.participant_id,
        current_streak=participant.current_streak,
        longest_streak=participant.longest_streak,
        total_points=participant.total_points,
        completed_days=completed,
        elapsed_days=elapsed,
        missed_days=max(0, elapsed - completed),
        days_remaining=max(0, challenge.duration_days - elapsed),
        perfect_weeks=participant.longest_streak // 7,
        calendar=_calendar(challenge, {entry.entry_date: entry for entry in entries}, anchor),
    )


def leaderboard(
    *,
    challenge_id: str,
    viewer_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[LeaderboardRow]:
    """Participants ranked by completion rate, then current streak."""
    anchor = today or local_today()
    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        participants = participant_store.list_participants(session, challenge_id)
        history = {
            p.participant_id: entry_store.list_entries(session, p.participant_id)
            for p in participants
        }

    total_days = elapsed_days(challenge, anchor)
    scored = []
    for participant in participants:
        entries = history[participant.participant_id]
        completed = sum(1 for entry in entries if entry.is_completed)
        rate = completed / total_days if total_days > 0 else 0.0
        scored.append((rate, participant, completed, entries[-1].entry_date if entries else None))

    scored.sort(key=lambda item: (-item[0], -item[1].current_streak))
    return [
        LeaderboardRow(
            rank=index + 1,
            participant_id=participant.participant_id,
            user_id=participant.user_id,
            completed_days=completed,
            total_days=total_days,
            completion_rate=round_half_up(rate * 100),
            current_streak=participant.current_streak,
            longest_streak=participant.longest_streak,
            total_points=participant.total_points,
            last_activity=last_activity,
            is_current_user=participant.user_id == viewer_id,
        )
        for index, (rate, participant, completed, last_activity) in enumerate(scored)
    ]
