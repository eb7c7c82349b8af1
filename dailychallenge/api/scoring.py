"""Score a hypothetical entry without touching storage."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from dailychallenge.api.schemas import BonusIn, MetricIn
from dailychallenge.features.scoring.engine import calculate_bonus_points, calculate_daily_points
from dailychallenge.models.challenge import BonusConfig

router = APIRouter(prefix="/v1/scoring", tags=["scoring"])


class PreviewRequest(BaseModel):
    metrics: List[MetricIn] = Field(..., min_length=1)
    metric_data: Dict[str, Any] = Field(default_factory=dict)
    bonus: Optional[BonusIn] = None
    current_streak: int = Field(0, ge=0)


@router.post("/preview")
def preview(req: PreviewRequest):
    metrics = [metric.to_definition() for metric in req.metrics]
    bonus = req.bonus.to_config() if req.bonus else BonusConfig()
    daily = calculate_daily_points(metrics, req.metric_data)
    bonuses = calculate_bonus_points(bonus, req.current_streak, daily.all_required_complete)
    return {
        "data": {
            "base_points": daily.base_points,
            "bonus_points": bonuses.total_bonus,
            "streak_bonus": bonuses.streak_bonus,
            "perfect_day_bonus": bonuses.perfect_day_bonus,
            "total_points": daily.base_points + bonuses.total_bonus,
            "breakdown": daily.breakdown,
            "all_required_complete": daily.all_required_complete,
        }
    }
