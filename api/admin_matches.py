from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import require_admin
from models import Match, MatchStatus
from services import matches as match_service

router = APIRouter(dependencies=[Depends(require_admin)])


class MatchRequest(BaseModel):
    tournament_id: str = Field(..., min_length=1)
    home_team_id: str = Field(..., min_length=1)
    away_team_id: str = Field(..., min_length=1)
    match_date: datetime
    round: Optional[str] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    # 1..3, enforced by validate_match_fields
    multiplier: int = 1


class ScoreRequest(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)
    status: Optional[MatchStatus] = None


@router.post("/matches", response_model=Match)
def create_match(body: MatchRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to create match"):
        return match_service.create_match(supabase, body.model_dump(mode="json"))


@router.put("/matches/{match_id}", response_model=Match)
def update_match(match_id: str, body: MatchRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to update match"):
        return match_service.update_match(supabase, match_id, body.model_dump(mode="json"))


@router.delete("/matches/{match_id}")
def delete_match(match_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to delete match"):
        match_service.delete_match(supabase, match_id)
    return {"success": True}


@router.post("/matches/{match_id}/score", summary="Record a score and rescore predictions")
def score_match(match_id: str, body: ScoreRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to update match score"):
        scored = match_service.settle_match(
            supabase,
            match_id,
            body.home_score,
            body.away_score,
            body.status.value if body.status else None,
        )
    return {"success": True, "predictionsUpdated": scored}
