"""
Challenge lifecycle API: create, read, scoring changes, recalculation,
membership.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from dailychallenge.api.schemas import BonusIn, MetricIn
from dailychallenge.core.auth import get_current_user_id
from dailychallenge.core.errors import AppError, NotFoundError, PersistenceError, UnauthorizedError
from dailychallenge.features.challenges import service as challenge_service
from dailychallenge.features.participants import service as participant_service
from dailychallenge.features.recalculation.service import recalculate_all_points

router = APIRouter(prefix="/v1/challenges", tags=["challenges"])

_RECALCULATION_ERRORS = {cls.code: cls for cls in (NotFoundError, UnauthorizedError, PersistenceError)}


class CreateChallengeRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    starts_at: date
    duration_days: int = Field(..., ge=1, le=365)
    is_public: bool = True
    lock_entries_after_day: bool = False
    failure_mode: Literal["strict", "flexible", "grace"] = "flexible"
    metrics: List[MetricIn] = Field(..., min_length=1)
    bonus: Optional[BonusIn] = None


class UpdateScoringRequest(BaseModel):
    metrics: Optional[List[MetricIn]] = Field(None, min_length=1)
    bonus: Optional[BonusIn] = None


class JoinRequest(BaseModel):
    challenge_id: Optional[str] = None
    invite_code: Optional[str] = Field(None, min_length=1, max_length=32)


@router.post("", status_code=201)
def create_challenge(req: CreateChallengeRequest, user_id: str = Depends(get_current_user_id)):
    """Create a challenge; the caller becomes its creator and first participant."""
    challenge = challenge_service.create_challenge(
        creator_id=user_id,
        name=req.name,
        description=req.description,
        starts_at=req.starts_at,
        duration_days=req.duration_days,
        is_public=req.is_public,
        lock_entries_after_day=req.lock_entries_after_day,
        failure_mode=req.failure_mode,
        metrics=[metric.to_definition() for metric in req.metrics],
        bonus=req.bonus.to_config() if req.bonus else None,
    )
    return {"data": challenge.to_dict(include_invite_code=True)}


@router.post("/join", status_code=201)
def join_challenge(req: JoinRequest, user_id: str = Depends(get_current_user_id)):
    participant = participant_service.join_challenge(
        user_id=user_id,
        challenge_id=req.challenge_id,
        invite_code=req.invite_code,
    )
    return {"data": participant.to_dict()}


@router.get("/{challenge_id}")
def get_challenge(challenge_id: str, user_id: str = Depends(get_current_user_id)):
    challenge = challenge_service.get_challenge(challenge_id)
    return {"data": challenge.to_dict(include_invite_code=challenge.creator_id == user_id)}


@router.patch("/{challenge_id}/scoring")
def update_scoring(challenge_id: str, req: UpdateScoringRequest, user_id: str = Depends(get_current_user_id)):
    """Replace metrics and/or bonus settings. Stored points change only on recalculate."""
    challenge = challenge_service.update_scoring(
        user_id=user_id,
        challenge_id=challenge_id,
        metrics=[metric.to_definition() for metric in req.metrics] if req.metrics is not None else None,
        bonus=req.bonus.to_config() if req.bonus else None,
    )
    return {"data": challenge.to_dict(include_invite_code=True)}


@router.post("/{challenge_id}/recalculate")
def recalculate(challenge_id: str, user_id: str = Depends(get_current_user_id)):
    result = recalculate_all_points(user_id=user_id, challenge_id=challenge_id)
    if not result.success:
        error_cls = _RECALCULATION_ERRORS.get(result.error_code, AppError)
        raise error_cls(result.error or "Recalculation failed")
    return {"data": {"recalculated": result.recalculated}}


@router.post("/{challenge_id}/leave", status_code=204)
def leave_challenge(challenge_id: str, user_id: str = Depends(get_current_user_id)):
    participant_service.leave_challenge(user_id=user_id, challenge_id=challenge_id)


@router.delete("/{challenge_id}/participants/{participant_id}", status_code=204)
def remove_participant(challenge_id: str, participant_id: str, user_id: str = Depends(get_current_user_id)):
    participant_service.remove_participant(
        user_id=user_id,
        challenge_id=challenge_id,
        participant_id=participant_id,
    )
