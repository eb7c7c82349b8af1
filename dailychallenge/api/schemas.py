"""Request bodies shared by the challenge and scoring routers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from dailychallenge.models.challenge import BonusConfig
from dailychallenge.models.metric import MetricDefinition, MetricType, ScoringMode, ThresholdType, parse_metric


class TierIn(BaseModel):
    threshold: float
    points: float = Field(..., ge=0)


class MetricIn(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    type: MetricType
    required: bool = True
    order: int = 0
    config: Dict[str, Any] = Field(default_factory=dict)
    points: Optional[float] = Field(None, ge=0)
    scoring_mode: Optional[ScoringMode] = None
    threshold: Optional[float] = None
    threshold_type: Optional[ThresholdType] = None
    tiers: Optional[List[TierIn]] = None

    def to_definition(self) -> MetricDefinition:
        return parse_metric(self.model_dump(mode="json", exclude_none=True))


class BonusIn(BaseModel):
    enable_streak_bonus: bool = False
    streak_bonus_points: Optional[float] = Field(None, ge=0)
    enable_perfect_day_bonus: bool = False
    perfect_day_bonus_points: Optional[float] = Field(None, ge=0)

    def to_config(self) -> BonusConfig:
        return BonusConfig(**self.model_dump())
