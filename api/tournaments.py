from fastapi import APIRouter, Depends
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from middleware.error_handler import NotFoundException
from models import PublicUser, Team, Tournament, TournamentRanking
from services import tournaments as tournament_service

router = APIRouter()


@router.get("", response_model=list[Tournament], summary="List tournaments, newest first")
def list_tournaments(supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch tournaments"):
        return tournament_service.list_tournaments(supabase)


@router.get("/{tournament_id}", response_model=Tournament)
def get_tournament(tournament_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch tournament"):
        return tournament_service.get_tournament(supabase, tournament_id)


@router.get(
    "/{tournament_id}/participants",
    response_model=list[PublicUser],
    summary="Participants in join order (public fields only)",
)
def list_participants(tournament_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch tournament participants"):
        return tournament_service.list_participants(supabase, tournament_id)


@router.get("/{tournament_id}/teams", response_model=list[Team])
def list_teams(tournament_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch tournament teams"):
        return tournament_service.list_tournament_teams(supabase, tournament_id)


@router.get("/{tournament_id}/rankings", response_model=list[TournamentRanking])
def rankings(tournament_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch rankings"):
        return tournament_service.get_rankings(supabase, tournament_id)


@router.get("/{tournament_id}/rankings/{user_id}", response_model=TournamentRanking)
def user_ranking(tournament_id: str, user_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch ranking"):
        ranking = tournament_service.get_user_ranking(supabase, tournament_id, user_id)
    if ranking is None:
        raise NotFoundException("Ranking not found")
    return ranking
