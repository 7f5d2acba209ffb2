import logging
from typing import Any, Optional

from supabase import Client

from core.supabase_client import fetch_all, fetch_one, returned_row, utc_now
from middleware.error_handler import BadRequestException, NotFoundException
from models import (
    PublicUser,
    Team,
    Tournament,
    TournamentParticipant,
    TournamentRanking,
    TournamentStatus,
    TournamentTeam,
    User,
)
from services.privacy import sanitize_user_for_public

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tournaments
# ---------------------------------------------------------------------------

def list_tournaments(client: Client) -> list[Tournament]:
    rows = fetch_all(client.table("tournaments").select("*").order("start_date", desc=True))
    return [Tournament.model_validate(row) for row in rows]


def get_tournament(client: Client, tournament_id: str) -> Tournament:
    row = fetch_one(client.table("tournaments").select("*").eq("id", tournament_id))
    if row is None:
        raise NotFoundException("Tournament not found")
    return Tournament.model_validate(row)


def create_tournament(client: Client, fields: dict[str, Any]) -> Tournament:
    payload = dict(fields)
    payload["status"] = payload.get("status") or TournamentStatus.UPCOMING.value
    row = returned_row(client.table("tournaments").insert(payload).execute())
    tournament = Tournament.model_validate(row)
    logger.info("Tournament created", extra={"tournament_id": tournament.id})
    return tournament


def update_tournament(client: Client, tournament_id: str, fields: dict[str, Any]) -> Tournament:
    payload = {**fields, "updated_at": utc_now()}
    row = returned_row(
        client.table("tournaments").update(payload).eq("id", tournament_id).execute()
    )
    if row is None:
        raise NotFoundException("Tournament not found")
    return Tournament.model_validate(row)


def delete_tournament(client: Client, tournament_id: str) -> None:
    """Delete a tournament that has neither matches nor ranked predictions."""
    if fetch_one(client.table("matches").select("id").eq("tournament_id", tournament_id)):
        raise BadRequestException(
            "Cannot delete tournament: it has matches. Delete the matches first."
        )
    if fetch_one(
        client.table("tournament_rankings").select("user_id").eq("tournament_id", tournament_id)
    ):
        raise BadRequestException(
            "Cannot delete tournament: users have predictions in this tournament."
        )

    client.table("tournament_teams").delete().eq("tournament_id", tournament_id).execute()
    client.table("tournaments").delete().eq("id", tournament_id).execute()
    logger.info("Tournament deleted", extra={"tournament_id": tournament_id})


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

def is_participant(client: Client, tournament_id: str, user_id: str) -> bool:
    row = fetch_one(
        client.table("tournament_participants")
        .select("user_id")
        .eq("tournament_id", tournament_id)
        .eq("user_id", user_id)
    )
    return row is not None


def list_participants(client: Client, tournament_id: str) -> list[PublicUser]:
    """Participants in join order, stripped down to their public fields."""
    memberships = [
        TournamentParticipant.model_validate(row)
        for row in fetch_all(
            client.table("tournament_participants")
            .select("tournament_id, user_id, joined_at")
            .eq("tournament_id", tournament_id)
            .order("joined_at")
        )
    ]
    if not memberships:
        return []

    user_ids = [m.user_id for m in memberships]
    users = {
        row["id"]: User.model_validate(row)
        for row in fetch_all(client.table("users").select("*").in_("id", user_ids))
    }
    return [sanitize_user_for_public(users[uid]) for uid in user_ids if uid in users]


def add_participant(client: Client, tournament_id: str, user_id: str) -> TournamentParticipant:
    if fetch_one(client.table("users").select("id").eq("id", user_id)) is None:
        raise NotFoundException("User not found")
    if is_participant(client, tournament_id, user_id):
        raise BadRequestException("User is already a participant in this tournament")

    row = returned_row(
        client.table("tournament_participants")
        .insert({"tournament_id": tournament_id, "user_id": user_id})
        .execute()
    )
    logger.info(
        "Participant added",
        extra={"tournament_id": tournament_id, "user_id": user_id},
    )
    return TournamentParticipant.model_validate(row)


def remove_participant(client: Client, tournament_id: str, user_id: str) -> None:
    """Remove a participant who has not predicted any match of the tournament."""
    match_ids = [
        row["id"]
        for row in fetch_all(
            client.table("matches").select("id").eq("tournament_id", tournament_id)
        )
    ]
    if match_ids and fetch_one(
        client.table("predictions")
        .select("id")
        .eq("user_id", user_id)
        .in_("match_id", match_ids)
    ):
        raise BadRequestException(
            "Cannot remove participant: user has predictions in this tournament"
        )

    (
        client.table("tournament_participants")
        .delete()
        .eq("tournament_id", tournament_id)
        .eq("user_id", user_id)
        .execute()
    )
    logger.info(
        "Participant removed",
        extra={"tournament_id": tournament_id, "user_id": user_id},
    )


# ---------------------------------------------------------------------------
# Tournament teams
# ---------------------------------------------------------------------------

def list_tournament_teams(client: Client, tournament_id: str) -> list[Team]:
    team_ids = [
        row["team_id"]
        for row in fetch_all(
            client.table("tournament_teams").select("team_id").eq("tournament_id", tournament_id)
        )
    ]
    if not team_ids:
        return []
    rows = fetch_all(client.table("teams").select("*").in_("id", team_ids).order("name"))
    return [Team.model_validate(row) for row in rows]


def add_tournament_team(client: Client, tournament_id: str, team_id: str) -> TournamentTeam:
    existing = fetch_one(
        client.table("tournament_teams")
        .select("team_id")
        .eq("tournament_id", tournament_id)
        .eq("team_id", team_id)
    )
    if existing:
        raise BadRequestException("Team is already in this tournament")

    row = returned_row(
        client.table("tournament_teams")
        .insert({"tournament_id": tournament_id, "team_id": team_id})
        .execute()
    )
    return TournamentTeam.model_validate(row)


def remove_tournament_team(client: Client, tournament_id: str, team_id: str) -> None:
    matches = fetch_all(
        client.table("matches")
        .select("id, home_team_id, away_team_id")
        .eq("tournament_id", tournament_id)
    )
    if any(team_id in (m.get("home_team_id"), m.get("away_team_id")) for m in matches):
        raise BadRequestException(
            "Cannot remove team: it has matches in this tournament"
        )

    (
        client.table("tournament_teams")
        .delete()
        .eq("tournament_id", tournament_id)
        .eq("team_id", team_id)
        .execute()
    )


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------

def get_rankings(client: Client, tournament_id: str) -> list[TournamentRanking]:
    """Rows of the ``tournament_rankings`` view; deactivated users are already excluded."""
    rows = fetch_all(
        client.table("tournament_rankings")
        .select("*")
        .eq("tournament_id", tournament_id)
        .order("rank")
    )
    return [TournamentRanking.model_validate(row) for row in rows]


def get_user_ranking(
    client: Client, tournament_id: str, user_id: str
) -> Optional[TournamentRanking]:
    row = fetch_one(
        client.table("tournament_rankings")
        .select("*")
        .eq("tournament_id", tournament_id)
        .eq("user_id", user_id)
    )
    return TournamentRanking.model_validate(row) if row else None
