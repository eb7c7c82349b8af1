"""
Entry Scoring Engine

Pure, deterministic conversion of one day's metric submissions into points.
No external calls, no randomness, no side effects.

Scoring rules:
- boolean: full points only for a literal True
- choice/text/file: full points when a value is present
- number/duration: binary, scaled or tiered against threshold/tiers,
  in either min (at least) or max (at most) direction
- Streak bonus rewards the streak held before today's completion
- Perfect-day bonus requires every required metric to score above zero

Nothing here raises on malformed configuration or values: anything that
cannot be interpreted scores 0.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from dailychallenge.core.config import settings
from dailychallenge.models.challenge import BonusConfig
from dailychallenge.models.metric import (
    MetricDefinition,
    MetricType,
    NumericMetric,
    ScoreTier,
    ScoringMode,
    ThresholdType,
)
from dailychallenge.models.scoring import BonusPoints, DailyPoints, EntryScore

BINARY_DEFAULT_THRESHOLD = 0
SCALED_DEFAULT_THRESHOLD = 100


def round_half_up(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _is_present(value: Any) -> bool:
    # Containers count as present even when empty
    if isinstance(value, (list, tuple, dict)):
        return True
    return bool(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # Integers beyond float range behave as infinitely large
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        try:
            number = float(value.strip() or 0)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _score_boolean(metric: MetricDefinition, value: Any) -> float:
    return metric.points if value is True else 0


def _score_choice(metric: MetricDefinition, value: Any) -> float:
    return metric.points if _is_present(value) else 0


def _text_of(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else _text_of(item) for item in value)
    if isinstance(value, int) and not isinstance(value, bool):
        # Any integer renders as at least one digit
        return "0"
    return str(value)


def _score_text(metric: MetricDefinition, value: Any) -> float:
    return metric.points if len(_text_of(value)) > 0 else 0


def _score_file(metric: MetricDefinition, value: Any) -> float:
    if isinstance(value, (list, tuple)):
        return metric.points if len(value) > 0 else 0
    return metric.points if value else 0


def _score_numeric(metric: MetricDefinition, value: Any) -> float:
    if not isinstance(metric, NumericMetric):
        return 0
    number = _to_number(value)
    if number is None:
        return 0
    return calculate_numeric_points(
        number,
        metric.points,
        metric.scoring_mode,
        threshold=metric.threshold,
        threshold_type=metric.threshold_type,
        tiers=metric.tiers,
    )


_SCORERS: Dict[str, Callable[[MetricDefinition, Any], float]] = {
    MetricType.BOOLEAN.value: _score_boolean,
    MetricType.NUMBER.value: _score_numeric,
    MetricType.DURATION.value: _score_numeric,
    MetricType.CHOICE.value: _score_choice,
    MetricType.TEXT.value: _score_text,
    MetricType.FILE.value: _score_file,
}


def calculate_numeric_points(
    value: float,
    max_points: float,
    scoring_mode: str,
    *,
    threshold: Optional[float] = None,
    threshold_type: str = ThresholdType.MIN.value,
    tiers: Optional[Iterable[ScoreTier]] = None,
) -> int:
    """
    Score a numeric or duration submission.

    binary: max_points when value meets the threshold (default 0), else 0.
    scaled: proportional to value/threshold (default 100). Under max direction
        the proportion is inverted, and reaching the threshold earns nothing.
    tiered: points of the best tier the value satisfies, 0 if none.
    """
    at_most = threshold_type == ThresholdType.MAX.value

    if scoring_mode == ScoringMode.BINARY.value:
        target = BINARY_DEFAULT_THRESHOLD if threshold is None else threshold
        met = value <= target if at_most else value >= target
        return round_half_up(max_points) if met else 0

    if scoring_mode == ScoringMode.SCALED.value:
        target = SCALED_DEFAULT_THRESHOLD if threshold is None else threshold
        if target == 0:
            return 0
        if at_most:
            if value >= target:
                return 0
            percentage = 1 - (value / target)
        else:
            percentage = value / target
        percentage = max(0.0, min(1.0, percentage))
        return round_half_up(max_points * percentage)

    if scoring_mode == ScoringMode.TIERED.value:
        tier_list = list(tiers or [])
        if not tier_list:
            return 0
        if at_most:
            for tier in sorted(tier_list, key=lambda t: t.threshold):
                if value <= tier.threshold:
                    return round_half_up(tier.points)
        else:
            for tier in sorted(tier_list, key=lambda t: t.threshold, reverse=True):
                if value >= tier.threshold:
                    return round_half_up(tier.points)
        return 0

    return 0


def calculate_metric_points(metric: MetricDefinition, value: Any) -> int:
    """Points earned by one metric for one submitted value."""
    # Absent values score 0 whether or not the metric is required
    if _is_empty(value):
        return 0
    scorer = _SCORERS.get(metric.type)
    if scorer is None:
        return 0
    return round_half_up(scorer(metric, value))


def calculate_daily_points(
    metrics: Optional[Iterable[MetricDefinition]],
    metric_data: Optional[Mapping[str, Any]],
) -> DailyPoints:
    """
    Sum every metric's points for one day.

    all_required_complete is False as soon as a required metric scores exactly
    zero; partial credit still counts as complete.
    """
    data = metric_data if isinstance(metric_data, Mapping) else {}
    base_points = 0
    breakdown: Dict[str, int] = {}
    all_required_complete = True

    for metric in metrics or []:
        points = calculate_metric_points(metric, data.get(metric.id))
        breakdown[metric.id] = points
        base_points += points
        if metric.required and points == 0:
            all_required_complete = False

    return DailyPoints(
        base_points=base_points,
        breakdown=breakdown,
        all_required_complete=all_required_complete,
    )


def calculate_bonus_points(
    bonus: BonusConfig,
    current_streak: int,
    all_required_complete: bool,
) -> BonusPoints:
    """
    Streak and perfect-day bonuses.

    current_streak is the participant's stored streak before today's entry is
    folded in.
    """
    streak_bonus = 0
    perfect_day_bonus = 0

    if bonus.enable_streak_bonus and current_streak and current_streak > 0:
        per_day = bonus.streak_bonus_points
        if per_day is None:
            per_day = settings.DEFAULT_STREAK_BONUS_POINTS
        streak_bonus = round_half_up(per_day * current_streak)

    if bonus.enable_perfect_day_bonus and all_required_complete:
        flat = bonus.perfect_day_bonus_points
        if flat is None:
            flat = settings.DEFAULT_PERFECT_DAY_BONUS_POINTS
        perfect_day_bonus = round_half_up(flat)

    return BonusPoints(streak_bonus=streak_bonus, perfect_day_bonus=perfect_day_bonus)


def calculate_entry_score(
    metrics: Optional[Iterable[MetricDefinition]],
    metric_data: Optional[Mapping[str, Any]],
    bonus: BonusConfig,
    current_streak: int,
) -> EntryScore:
    """Base + bonus points for one entry; used by submission and recalculation."""
    daily = calculate_daily_points(metrics, metric_data)
    bonuses = calculate_bonus_points(bonus, current_streak, daily.all_required_complete)
    return EntryScore(
        base_points=daily.base_points,
        bonus_points=bonuses.total_bonus,
        breakdown=daily.breakdown,
    )
