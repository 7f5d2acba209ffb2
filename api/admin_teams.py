from fastapi import APIRouter, Depends
from supabase import Client

from api.teams import TeamRequest
from core.supabase_client import backend_call, get_supabase
from dependencies.auth import require_admin
from models import Team
from services import teams as team_service

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/teams", response_model=Team)
def create_team(body: TeamRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to create team"):
        return team_service.create_team(supabase, body.model_dump())


@router.put("/teams/{team_id}", response_model=Team)
def update_team(team_id: str, body: TeamRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to update team"):
        return team_service.update_team(supabase, team_id, body.model_dump())


@router.delete("/teams/{team_id}")
def delete_team(team_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to delete team"):
        team_service.delete_team(supabase, team_id)
    return {"success": True}
