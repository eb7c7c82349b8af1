from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from dailychallenge.core.errors import AppError
    from dailychallenge.models.participant import Participant
    from dailychallenge.models.scoring import EntryScore


@dataclass
class DailyEntry:
    """One participant's submission for one calendar date."""

    entry_id: str
    participant_id: str
    entry_date: date
    metric_data: Dict[str, Any] = field(default_factory=dict)
    is_completed: bool = False
    is_locked: bool = False
    notes: Optional[str] = None
    points_earned: int = 0
    bonus_points: int = 0
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_points(self) -> int:
        return (self.points_earned or 0) + (self.bonus_points or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "participant_id": self.participant_id,
            "entry_date": self.entry_date.isoformat(),
            "metric_data": self.metric_data,
            "is_completed": self.is_completed,
            "is_locked": self.is_locked,
            "notes": self.notes,
            "points_earned": self.points_earned,
            "bonus_points": self.bonus_points,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }


@dataclass
class SubmissionResult:
    """Outcome of one entry submission; failures carry the error instead of raising."""

    success: bool
    entry: Optional[DailyEntry] = None
    participant: Optional["Participant"] = None
    score: Optional["EntryScore"] = None
    failure: Optional["AppError"] = None

    @property
    def error(self) -> Optional[str]:
        return self.failure.message if self.failure else None
