from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from models import Match
from services import matches as match_service

router = APIRouter()


@router.get("", response_model=list[Match], summary="Matches by kickoff time")
def list_matches(
    tournament_id: Optional[str] = Query(None),
    supabase: Client = Depends(get_supabase),
):
    with backend_call("Failed to fetch matches"):
        return match_service.list_matches(supabase, tournament_id)


@router.get("/{match_id}", response_model=Match)
def get_match(match_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch match"):
        return match_service.require_match(supabase, match_id)
