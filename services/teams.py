import logging
from typing import Any

from supabase import Client

from core.supabase_client import fetch_all, fetch_one, returned_row, utc_now
from middleware.error_handler import BadRequestException, NotFoundException
from models import Team

logger = logging.getLogger(__name__)


def list_teams(client: Client) -> list[Team]:
    rows = fetch_all(client.table("teams").select("*").order("name"))
    return [Team.model_validate(row) for row in rows]


def get_team(client: Client, team_id: str) -> Team:
    row = fetch_one(client.table("teams").select("*").eq("id", team_id))
    if row is None:
        raise NotFoundException("Team not found")
    return Team.model_validate(row)


def create_team(client: Client, fields: dict[str, Any]) -> Team:
    team = Team.model_validate(returned_row(client.table("teams").insert(fields).execute()))
    logger.info("Team created", extra={"team_id": team.id})
    return team


def update_team(client: Client, team_id: str, fields: dict[str, Any]) -> Team:
    row = returned_row(
        client.table("teams")
        .update({**fields, "updated_at": utc_now()})
        .eq("id", team_id)
        .execute()
    )
    if row is None:
        raise NotFoundException("Team not found")
    return Team.model_validate(row)


def delete_team(client: Client, team_id: str) -> None:
    """Delete a team that never played a match and is in no tournament."""
    for column in ("home_team_id", "away_team_id"):
        if fetch_one(client.table("matches").select("id").eq(column, team_id)):
            raise BadRequestException(
                "Cannot delete team: it has participated in matches"
            )
    if fetch_one(client.table("tournament_teams").select("tournament_id").eq("team_id", team_id)):
        raise BadRequestException(
            "Cannot delete team: it is registered in tournaments. Remove it from them first."
        )

    client.table("teams").delete().eq("id", team_id).execute()
    logger.info("Team deleted", extra={"team_id": team_id})
