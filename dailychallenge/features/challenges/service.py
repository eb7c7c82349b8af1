from __future__ import annotations

import secrets
import string
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Union
from uuid import uuid4

from dailychallenge.core.config import settings
from dailychallenge.core.database import get_db_session
from dailychallenge.core.errors import NotFoundError, UnauthorizedError, ValidationError
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges import persistence as challenge_store
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.features.streaks.tracker import local_today
from dailychallenge.models.challenge import BonusConfig, Challenge, FailureMode
from dailychallenge.models.metric import MetricDefinition, parse_metric
from dailychallenge.models.participant import Participant

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100
MAX_DURATION_DAYS = 365
FAILURE_MODES = ("strict", "flexible", "grace")
_INVITE_ALPHABET = string.ascii_uppercase + string.digits

MetricInput = Union[MetricDefinition, Dict[str, Any]]


def generate_invite_code(length: Optional[int] = None) -> str:
    size = length or settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(size))


def _coerce_metrics(metrics: Sequence[MetricInput]) -> List[MetricDefinition]:
    parsed = [m if isinstance(m, MetricDefinition) else parse_metric(m) for m in metrics]
    ids = [m.id for m in parsed]
    if any(not metric_id for metric_id in ids):
        raise ValidationError("Every metric needs an id")
    if len(set(ids)) != len(ids):
        raise ValidationError("Metric ids must be unique within a challenge")
    return parsed


def create_challenge(
    *,
    creator_id: str,
    name: str,
    starts_at: date,
    duration_days: int,
    metrics: Sequence[MetricInput],
    description: Optional[str] = None,
    is_public: bool = True,
    lock_entries_after_day: bool = False,
    failure_mode: FailureMode = "flexible",
    bonus: Optional[BonusConfig] = None,
    today: Optional[date] = None,
) -> Challenge:
    """
    Create a challenge and enrol its creator as the first participant.

    Private challenges get an invite code; ends_at is the last day included.
    """
    name = (name or "").strip()
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        raise ValidationError(f"Challenge name must be {MIN_NAME_LENGTH}-{MAX_NAME_LENGTH} characters")
    if not 1 <= duration_days <= MAX_DURATION_DAYS:
        raise ValidationError(f"duration_days must be between 1 and {MAX_DURATION_DAYS}")
    if starts_at < (today or local_today()):
        raise ValidationError("Start date cannot be in the past")
    if failure_mode not in FAILURE_MODES:
        raise ValidationError(f"failure_mode must be one of {', '.join(FAILURE_MODES)}")
    parsed_metrics = _coerce_metrics(metrics)
    if not parsed_metrics:
        raise ValidationError("At least one metric is required")

    now = datetime.now(timezone.utc)
    challenge = Challenge(
        challenge_id=str(uuid4()),
        creator_id=creator_id,
        name=name,
        description=description,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(days=duration_days - 1),
        duration_days=duration_days,
        metrics=parsed_metrics,
        bonus=bonus or BonusConfig(),
        is_public=is_public,
        lock_entries_after_day=lock_entries_after_day,
        failure_mode=failure_mode,
        created_at=now,
        updated_at=now,
    )

    with get_db_session() as session:
        if not is_public:
            code = generate_invite_code()
            while challenge_store.get_challenge_by_invite_code(session, code) is not None:
                code = generate_invite_code()
            challenge.invite_code = code
        challenge_store.insert_challenge(session, challenge)
        participant_store.insert_participant(
            session,
            Participant(
                participant_id=str(uuid4()),
                challenge_id=challenge.challenge_id,
                user_id=creator_id,
                joined_at=now,
            ),
        )

    log_event(
        "info",
        "challenge.created",
        user_id=creator_id,
        challenge_id=challenge.challenge_id,
        event_type="challenge.created",
        extra={"metrics": len(parsed_metrics), "is_public": is_public},
    )
    return challenge


def get_challenge(challenge_id: str) -> Challenge:
    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
    if challenge is None:
        raise NotFoundError("Challenge not found")
    return challenge


def update_scoring(
    *,
    user_id: str,
    challenge_id: str,
    metrics: Optional[Sequence[MetricInput]] = None,
    bonus: Optional[BonusConfig] = None,
) -> Challenge:
    """
    Replace metric definitions and/or bonus settings (creator only).

    Existing entry points are left alone until a recalculation is requested.
    """
    parsed_metrics = _coerce_metrics(metrics) if metrics is not None else None
    if parsed_metrics is not None and not parsed_metrics:
        raise ValidationError("At least one metric is required")

    with get_db_session() as session:
        challenge = challenge_store.get_challenge(session, challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        if challenge.creator_id != user_id:
            raise UnauthorizedError("Only the challenge creator can change scoring")
        challenge_store.update_scoring(session, challenge_id, metrics=parsed_metrics, bonus=bonus)
        updated = challenge_store.get_challenge(session, challenge_id)

    log_event(
        "info",
        "challenge.scoring_updated",
        user_id=user_id,
        challenge_id=challenge_id,
        event_type="challenge.scoring_updated",
        extra={"metrics_changed": parsed_metrics is not None, "bonus_changed": bonus is not None},
    )
    return updated
