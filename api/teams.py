from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import require_admin
from models import Team
from services import teams as team_service

router = APIRouter()


class TeamRequest(BaseModel):
    name: str = Field(..., min_length=1)
    short_name: str = Field(..., min_length=1, max_length=10)
    country_code: Optional[str] = Field(None, max_length=3)
    logo_url: Optional[str] = None


@router.get("", response_model=list[Team], summary="List teams by name")
def list_teams(supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch teams"):
        return team_service.list_teams(supabase)


@router.post("", response_model=Team, dependencies=[Depends(require_admin)])
def create_team(body: TeamRequest, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to create team"):
        return team_service.create_team(supabase, body.model_dump())


@router.get("/{team_id}", response_model=Team)
def get_team(team_id: str, supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch team"):
        return team_service.get_team(supabase, team_id)
