from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

ParticipantStatus = Literal["active", "completed", "failed"]


@dataclass
class Participant:
    """
    One user's membership in one challenge.

    current_streak/longest_streak are written only by the streak tracker;
    total_points is the sum of points_earned + bonus_points over all entries.
    """

    participant_id: str
    challenge_id: str
    user_id: str
    status: ParticipantStatus = "active"
    joined_at: Optional[datetime] = None
    current_streak: int = 0
    longest_streak: int = 0
    total_points: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.participant_id,
            "challenge_id": self.challenge_id,
            "user_id": self.user_id,
            "status": self.status,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_points": self.total_points,
        }
