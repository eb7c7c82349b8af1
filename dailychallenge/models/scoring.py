"""Value objects returned by the scoring engine and streak tracker."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict


@dataclass(frozen=True)
class DailyPoints:
    base_points: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    all_required_complete: bool = True


@dataclass(frozen=True)
class BonusPoints:
    streak_bonus: int = 0
    perfect_day_bonus: int = 0

    @property
    def total_bonus(self) -> int:
        return self.streak_bonus + self.perfect_day_bonus


@dataclass(frozen=True)
class EntryScore:
    base_points: int
    bonus_points: int
    breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def total_points(self) -> int:
        return self.base_points + self.bonus_points

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_points"] = self.total_points
        return data


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int
