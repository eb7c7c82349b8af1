"""Daily entry submission and history."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from dailychallenge.core.auth import get_current_user_id
from dailychallenge.features.entries import service as entry_service

router = APIRouter(tags=["entries"])


class SubmitEntryRequest(BaseModel):
    participant_id: str = Field(..., min_length=1)
    metric_data: Dict[str, Any] = Field(default_factory=dict)
    is_completed: bool = False
    notes: Optional[str] = Field(None, max_length=2000)
    entry_date: Optional[date] = None


@router.post("/v1/entries")
def submit_entry(req: SubmitEntryRequest, user_id: str = Depends(get_current_user_id)):
    """
    Save (or overwrite) one day's entry.

    Returns the stored entry, the participant's refreshed streaks and totals,
    and the per-metric breakdown of the score.
    """
    result = entry_service.submit_entry(
        user_id=user_id,
        participant_id=req.participant_id,
        metric_data=req.metric_data,
        is_completed=req.is_completed,
        notes=req.notes,
        entry_date=req.entry_date,
    )
    if not result.success:
        raise result.failure
    return {
        "data": {
            "entry": result.entry.to_dict(),
            "participant": result.participant.to_dict(),
            "score": result.score.to_dict(),
        }
    }


@router.get("/v1/challenges/{challenge_id}/entries")
def list_entries(
    challenge_id: str,
    entry_date: Optional[date] = Query(None, alias="date"),
    user_id: str = Depends(get_current_user_id),
):
    entries = entry_service.list_entries(user_id=user_id, challenge_id=challenge_id, entry_date=entry_date)
    return {"data": [entry.to_dict() for entry in entries], "count": len(entries)}
