"""
Metric definitions: one variant per trackable field type.

Stored challenges keep metrics as a JSON list of
{id, name, type, required, order, config, points, scoring_mode, threshold,
threshold_type, tiers}. parse_metric() turns one such dict into the matching
variant and never raises; anything it cannot interpret is kept so the
scoring engine can degrade it to zero points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type


class MetricType(str, Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    DURATION = "duration"
    CHOICE = "choice"
    TEXT = "text"
    FILE = "file"
    COMBINED = "combined"  # reserved, never scored


class ScoringMode(str, Enum):
    BINARY = "binary"
    SCALED = "scaled"
    TIERED = "tiered"


class ThresholdType(str, Enum):
    MIN = "min"
    MAX = "max"


@dataclass(frozen=True)
class ScoreTier:
    threshold: float
    points: float

    def to_dict(self) -> dict:
        return {"threshold": self.threshold, "points": self.points}


@dataclass
class MetricDefinition:
    """Fields shared by every metric variant."""

    type: ClassVar[str] = ""

    id: str
    name: str = ""
    required: bool = True
    order: int = 0
    points: float = 1
    config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "order": self.order,
            "config": dict(self.config),
            "points": self.points,
        }


@dataclass
class BooleanMetric(MetricDefinition):
    type: ClassVar[str] = MetricType.BOOLEAN.value


@dataclass
class ChoiceMetric(MetricDefinition):
    type: ClassVar[str] = MetricType.CHOICE.value


@dataclass
class TextMetric(MetricDefinition):
    type: ClassVar[str] = MetricType.TEXT.value


@dataclass
class FileMetric(MetricDefinition):
    type: ClassVar[str] = MetricType.FILE.value


@dataclass
class NumericMetric(MetricDefinition):
    """Base for metrics scored by binary/scaled/tiered rules."""

    scoring_mode: str = ScoringMode.BINARY.value
    threshold: Optional[float] = None
    threshold_type: str = ThresholdType.MIN.value
    tiers: List[ScoreTier] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            {
                "scoring_mode": self.scoring_mode,
                "threshold": self.threshold,
                "threshold_type": self.threshold_type,
                "tiers": [tier.to_dict() for tier in self.tiers],
            }
        )
        return data


@dataclass
class NumberMetric(NumericMetric):
    type: ClassVar[str] = MetricType.NUMBER.value


@dataclass
class DurationMetric(NumericMetric):
    """Submissions are whole minutes."""

    type: ClassVar[str] = MetricType.DURATION.value


@dataclass
class UnscoredMetric(MetricDefinition):
    """`combined` and any type this service does not know how to score."""

    raw_type: str = ""

    @property
    def type(self) -> str:  # type: ignore[override]
        return self.raw_type


METRIC_VARIANTS: Dict[str, Type[MetricDefinition]] = {
    MetricType.BOOLEAN.value: BooleanMetric,
    MetricType.NUMBER.value: NumberMetric,
    MetricType.DURATION.value: DurationMetric,
    MetricType.CHOICE.value: ChoiceMetric,
    MetricType.TEXT.value: TextMetric,
    MetricType.FILE.value: FileMetric,
}


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _parse_tiers(raw: Any) -> List[ScoreTier]:
    if not isinstance(raw, list):
        return []
    tiers = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        threshold = _as_number(item.get("threshold"))
        points = _as_number(item.get("points"))
        if threshold is None or points is None:
            continue
        tiers.append(ScoreTier(threshold=threshold, points=points))
    return tiers


def parse_metric(raw: Dict[str, Any]) -> MetricDefinition:
    """Build the metric variant for a stored definition dict."""
    metric_type = str(raw.get("type") or "")
    points = _as_number(raw.get("points"))
    config = raw.get("config")
    common = {
        "id": str(raw.get("id") or ""),
        "name": str(raw.get("name") or ""),
        "required": bool(raw.get("required", True)),
        "order": int(_as_number(raw.get("order")) or 0),
        "points": 1 if points is None else points,
        "config": dict(config) if isinstance(config, dict) else {},
    }

    variant = METRIC_VARIANTS.get(metric_type)
    if variant is None:
        return UnscoredMetric(raw_type=metric_type, **common)
    if issubclass(variant, NumericMetric):
        return variant(
            scoring_mode=str(raw.get("scoring_mode") or ScoringMode.BINARY.value),
            threshold=_as_number(raw.get("threshold")),
            threshold_type=str(raw.get("threshold_type") or ThresholdType.MIN.value),
            tiers=_parse_tiers(raw.get("tiers")),
            **common,
        )
    return variant(**common)


def parse_metrics(raw: Optional[List[Any]]) -> List[MetricDefinition]:
    if not isinstance(raw, list):
        return []
    return [parse_metric(item) for item in raw if isinstance(item, dict)]
