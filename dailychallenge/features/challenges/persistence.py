"""
Challenge storage on the challenges table.

Functions take an open session so callers control the transaction.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from dailychallenge.core.database import challenges
from dailychallenge.models.challenge import BonusConfig, Challenge
from dailychallenge.models.metric import MetricDefinition, parse_metrics


def row_to_challenge(row) -> Challenge:
    return Challenge(
        challenge_id=row.id,
        creator_id=row.creator_id,
        name=row.name,
        description=row.description,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        duration_days=row.duration_days,
        is_public=row.is_public,
        invite_code=row.invite_code,
        lock_entries_after_day=row.lock_entries_after_day,
        failure_mode=row.failure_mode,
        metrics=parse_metrics(row.metrics),
        bonus=BonusConfig(
            enable_streak_bonus=row.enable_streak_bonus,
            streak_bonus_points=row.streak_bonus_points,
            enable_perfect_day_bonus=row.enable_perfect_day_bonus,
            perfect_day_bonus_points=row.perfect_day_bonus_points,
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _metrics_json(metrics: List[MetricDefinition]) -> list:
    return [metric.to_dict() for metric in metrics]


def get_challenge(session: Session, challenge_id: str) -> Optional[Challenge]:
    row = session.execute(
        select(challenges).where(challenges.c.id == challenge_id)
    ).first()
    return row_to_challenge(row) if row else None


def get_challenge_by_invite_code(session: Session, invite_code: str) -> Optional[Challenge]:
    row = session.execute(
        select(challenges).where(challenges.c.invite_code == invite_code)
    ).first()
    return row_to_challenge(row) if row else None


def insert_challenge(session: Session, challenge: Challenge) -> None:
    now = challenge.created_at or datetime.now(timezone.utc)
    session.execute(
        insert(challenges).values(
            id=challenge.challenge_id,
            creator_id=challenge.creator_id,
            name=challenge.name,
            description=challenge.description,
            starts_at=challenge.starts_at,
            ends_at=challenge.ends_at,
            duration_days=challenge.duration_days,
            is_public=challenge.is_public,
            invite_code=challenge.invite_code,
            lock_entries_after_day=challenge.lock_entries_after_day,
            failure_mode=challenge.failure_mode,
            metrics=_metrics_json(challenge.metrics),
            created_at=now,
            updated_at=now,
            **challenge.bonus.to_dict(),
        )
    )


def update_scoring(
    session: Session,
    challenge_id: str,
    *,
    metrics: Optional[List[MetricDefinition]] = None,
    bonus: Optional[BonusConfig] = None,
) -> None:
    values = {"updated_at": datetime.now(timezone.utc)}
    if metrics is not None:
        values["metrics"] = _metrics_json(metrics)
    if bonus is not None:
        values.update(bonus.to_dict())
    session.execute(
        update(challenges).where(challenges.c.id == challenge_id).values(**values)
    )
