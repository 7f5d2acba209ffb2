from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import require_admin
from middleware.error_handler import BadRequestException
from models import Tournament, TournamentParticipant, TournamentStatus, TournamentTeam
from services import matches as match_service
from services import tournaments as tournament_service

router = APIRouter(dependencies=[Depends(require_admin)])


class TournamentRequest(BaseModel):
    name: str = Field(..., min_length=1)
    sport: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    status: Optional[TournamentStatus] = None
    scoring_rules: Optional[Any] = None


class ParticipantRequest(BaseModel):
    user_id: Optional[str] = None


class TournamentTeamRequest(BaseModel):
    team_id: Optional[str] = None


@router.post("/tournaments", response_model=Tournament, summary="Create a tournament")
def create_tournament(body: TournamentRequest, supabase: Client = Depends(get_supabase)):
    """``status`` defaults to ``upcoming`` when omitted."""
    with backend_call("Failed to create tournament"):
        return tournament_service.create_tournament(
            supabase, body.model_dump(mode="json", exclude_none=True)
        )


@router.put("/tournaments/{tournament_id}", response_model=Tournament)
def update_tournament(
    tournament_id: str, body: TournamentRequest, supabase: Client = Depends(get_supabase)
):
    with backend_call("Failed to update tournament"):
        return tournament_service.update_tournament(
            supabase, tournament_id, body.model_dump(mode="json", exclude_none=True)
        )


@router.delete("/tournaments/{tournament_id}")
def delete_tournament(tournament_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to delete tournament"):
        tournament_service.delete_tournament(supabase, tournament_id)
    return {"success": True}


@router.post("/tournaments/{tournament_id}/participants", response_model=TournamentParticipant)
def add_participant(
    tournament_id: str, body: ParticipantRequest, supabase: Client = Depends(get_supabase)
):
    if not body.user_id:
        raise BadRequestException("User ID is required")
    with backend_call("Failed to add participant to tournament"):
        return tournament_service.add_participant(supabase, tournament_id, body.user_id)


@router.delete("/tournaments/{tournament_id}/participants")
def remove_participant(
    tournament_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    supabase: Client = Depends(get_supabase),
):
    if not user_id:
        raise BadRequestException("User ID is required")
    with backend_call("Failed to remove participant from tournament"):
        tournament_service.remove_participant(supabase, tournament_id, user_id)
    return {"success": True}


@router.post("/tournaments/{tournament_id}/teams", response_model=TournamentTeam)
def add_tournament_team(
    tournament_id: str, body: TournamentTeamRequest, supabase: Client = Depends(get_supabase)
):
    if not body.team_id:
        raise BadRequestException("Team ID is required")
    with backend_call("Failed to add team to tournament"):
        return tournament_service.add_tournament_team(supabase, tournament_id, body.team_id)


@router.delete("/tournaments/{tournament_id}/teams")
def remove_tournament_team(
    tournament_id: str,
    team_id: Optional[str] = Query(None, alias="teamId"),
    supabase: Client = Depends(get_supabase),
):
    if not team_id:
        raise BadRequestException("Team ID is required")
    with backend_call("Failed to remove team from tournament"):
        tournament_service.remove_tournament_team(supabase, tournament_id, team_id)
    return {"success": True}


@router.post(
    "/reset-incomplete-predictions",
    summary="Zero points on predictions for matches that are not completed",
)
def reset_incomplete_predictions(supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to reset predictions"):
        return match_service.reset_incomplete_predictions(supabase)
