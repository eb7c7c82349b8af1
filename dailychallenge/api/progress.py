from __future__ import annotations

from fastapi import APIRouter, Depends

from dailychallenge.core.auth import get_current_user_id
from dailychallenge.features.progress import service as progress_service

router = APIRouter(prefix="/v1/challenges", tags=["progress"])


@router.get("/{challenge_id}/progress")
def get_progress(challenge_id: str, user_id: str = Depends(get_current_user_id)):
    summary = progress_service.progress_summary(user_id=user_id, challenge_id=challenge_id)
    return {"data": summary.to_dict()}


@router.get("/{challenge_id}/leaderboard")
def get_leaderboard(challenge_id: str, user_id: str = Depends(get_current_user_id)):
    rows = progress_service.leaderboard(challenge_id=challenge_id, viewer_id=user_id)
    return {"data": [row.to_dict() for row in rows], "count": len(rows)}
