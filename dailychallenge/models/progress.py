from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import List, Literal, Optional

DayStatus = Literal["outside", "future", "today", "completed", "late", "missed"]


@dataclass
class CalendarDay:
    day: date
    status: DayStatus
    points: Optional[int] = None  # None for today/future/outside days

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "status": self.status, "points": self.points}


@dataclass
class ProgressSummary:
    """A participant's standing in one challenge as of a given day."""

    challenge_id: str
    participant_id: str
    current_streak: int
    longest_streak: int
    total_points: int
    completed_days: int
    elapsed_days: int
    missed_days: int
    days_remaining: int
    perfect_weeks: int
    calendar: List[CalendarDay] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["calendar"] = [day.to_dict() for day in self.calendar]
        return data


@dataclass
class LeaderboardRow:
    rank: int
    participant_id: str
    user_id: str
    completed_days: int
    total_days: int
    completion_rate: int  # percent, rounded
    current_streak: int
    longest_streak: int
    total_points: int
    last_activity: Optional[date] = None
    is_current_user: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_activity"] = self.last_activity.isoformat() if self.last_activity else None
        return data
