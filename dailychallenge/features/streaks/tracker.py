from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Set, Union

from dailychallenge.models.scoring import StreakResult

DateLike = Union[date, datetime, str]


def local_today() -> date:
    """Today's calendar date in the server's local timezone."""
    return date.today()


def normalize_day(value: DateLike) -> date:
    """Reduce a date, datetime or ISO string to a local calendar date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def compute_streaks(
    completed_dates: Iterable[DateLike],
    today: Optional[DateLike] = None,
    previous_longest: int = 0,
) -> StreakResult:
    """
    Count consecutive completed days ending at today.

    The walk starts at today and moves back one day at a time, stopping at the
    first day without a completed entry, so a day not yet completed today
    means a streak of 0. Dates after today are ignored.

    longest_streak only ratchets upward from previous_longest; it is never
    rebuilt from history.
    """
    anchor = normalize_day(today) if today is not None else local_today()
    days: Set[date] = {normalize_day(d) for d in completed_dates}

    current = 0
    cursor = anchor
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest = max(current, previous_longest or 0)
    return StreakResult(current_streak=current, longest_streak=longest)
