from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Literal, Optional

from dailychallenge.models.metric import MetricDefinition

FailureMode = Literal["strict", "flexible", "grace"]


@dataclass
class BonusConfig:
    """Challenge-level bonus settings. None amounts fall back to defaults."""

    enable_streak_bonus: bool = False
    streak_bonus_points: Optional[float] = None
    enable_perfect_day_bonus: bool = False
    perfect_day_bonus_points: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "enable_streak_bonus": self.enable_streak_bonus,
            "streak_bonus_points": self.streak_bonus_points,
            "enable_perfect_day_bonus": self.enable_perfect_day_bonus,
            "perfect_day_bonus_points": self.perfect_day_bonus_points,
        }


@dataclass
class Challenge:
    """Domain model for a user-defined daily challenge."""

    challenge_id: str
    creator_id: str
    name: str
    starts_at: date
    ends_at: date
    duration_days: int
    metrics: List[MetricDefinition] = field(default_factory=list)
    bonus: BonusConfig = field(default_factory=BonusConfig)
    description: Optional[str] = None
    is_public: bool = True
    invite_code: Optional[str] = None
    lock_entries_after_day: bool = False
    failure_mode: FailureMode = "flexible"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self, *, include_invite_code: bool = False) -> dict:
        data = {
            "id": self.challenge_id,
            "creator_id": self.creator_id,
            "name": self.name,
            "description": self.description,
            "starts_at": self.starts_at.isoformat(),
            "ends_at": self.ends_at.isoformat(),
            "duration_days": self.duration_days,
            "is_public": self.is_public,
            "lock_entries_after_day": self.lock_entries_after_day,
            "failure_mode": self.failure_mode,
            "metrics": [metric.to_dict() for metric in self.metrics],
            **self.bonus.to_dict(),
        }
        if include_invite_code:
            data["invite_code"] = self.invite_code
        return data


@dataclass
class RecalculationResult:
    """Aggregate outcome of re-scoring every entry in a challenge."""

    success: bool
    recalculated: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None
