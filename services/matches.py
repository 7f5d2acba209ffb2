"""
Match administration and settlement.

Settlement is the only code path that writes ``points_earned``: recording a
final score rescores every prediction on the match, and moving a completed
match back to another status zeroes them again.
"""

import logging
from typing import Any, Optional

from supabase import Client

from core.supabase_client import fetch_all, fetch_one, returned_row, utc_now
from engine.scoring import calculate_points
from middleware.error_handler import BadRequestException, NotFoundException
from models import Match, MatchStatus, Prediction

logger = logging.getLogger(__name__)

MIN_MULTIPLIER = 1
MAX_MULTIPLIER = 3


def list_matches(client: Client, tournament_id: Optional[str] = None) -> list[Match]:
    query = client.table("matches").select("*").order("match_date")
    if tournament_id:
        query = query.eq("tournament_id", tournament_id)
    return [Match.model_validate(row) for row in fetch_all(query)]


def get_match(client: Client, match_id: str) -> Optional[Match]:
    row = fetch_one(client.table("matches").select("*").eq("id", match_id))
    return Match.model_validate(row) if row else None


def get_matches_by_id(client: Client, match_ids: list[str]) -> dict[str, Match]:
    """Look up several matches in one query, keyed by id."""
    if not match_ids:
        return {}
    rows = fetch_all(client.table("matches").select("*").in_("id", sorted(set(match_ids))))
    return {row["id"]: Match.model_validate(row) for row in rows}


def require_match(client: Client, match_id: str) -> Match:
    match = get_match(client, match_id)
    if match is None:
        raise NotFoundException("Match not found")
    return match


def validate_match_fields(client: Client, fields: dict[str, Any]) -> None:
    if fields["home_team_id"] == fields["away_team_id"]:
        raise BadRequestException("Home and away teams must be different")

    multiplier = fields.get("multiplier", MIN_MULTIPLIER)
    if not MIN_MULTIPLIER <= multiplier <= MAX_MULTIPLIER:
        raise BadRequestException(
            f"Multiplier must be an integer between {MIN_MULTIPLIER} and {MAX_MULTIPLIER}"
        )

    registered = fetch_all(
        client.table("tournament_teams")
        .select("team_id")
        .eq("tournament_id", fields["tournament_id"])
        .in_("team_id", [fields["home_team_id"], fields["away_team_id"]])
    )
    if len(registered) != 2:
        raise BadRequestException("Both teams must be registered in the tournament")


def create_match(client: Client, fields: dict[str, Any]) -> Match:
    validate_match_fields(client, fields)
    payload = {**fields, "home_score": None, "away_score": None}
    match = Match.model_validate(returned_row(client.table("matches").insert(payload).execute()))
    logger.info(
        "Match created",
        extra={"match_id": match.id, "tournament_id": match.tournament_id},
    )
    return match


def update_match(client: Client, match_id: str, fields: dict[str, Any]) -> Match:
    validate_match_fields(client, fields)
    row = returned_row(
        client.table("matches")
        .update({**fields, "updated_at": utc_now()})
        .eq("id", match_id)
        .execute()
    )
    if row is None:
        raise NotFoundException("Match not found")
    return Match.model_validate(row)


def delete_match(client: Client, match_id: str) -> None:
    if fetch_one(client.table("predictions").select("id").eq("match_id", match_id)):
        raise BadRequestException(
            "Cannot delete match: users have made predictions for this match. "
            "Cancel the match instead."
        )
    client.table("matches").delete().eq("id", match_id).execute()
    logger.info("Match deleted", extra={"match_id": match_id})


def settle_match(
    client: Client,
    match_id: str,
    home_score: int,
    away_score: int,
    status: Optional[str] = None,
) -> int:
    """
    Record a score and rescore the match's predictions.

    ``status`` defaults to completed. Returns the number of predictions
    whose points were rewritten.
    """
    match = require_match(client, match_id)
    new_status = MatchStatus(status or MatchStatus.COMPLETED).value
    unscoring = (
        match.status == MatchStatus.COMPLETED.value
        and new_status != MatchStatus.COMPLETED.value
    )

    (
        client.table("matches")
        .update({
            "home_score": home_score,
            "away_score": away_score,
            "status": new_status,
            "updated_at": utc_now(),
        })
        .eq("id", match_id)
        .execute()
    )

    predictions = [
        Prediction.model_validate(row)
        for row in fetch_all(client.table("predictions").select("*").eq("match_id", match_id))
    ]
    for prediction in predictions:
        points = 0
        if not unscoring and new_status == MatchStatus.COMPLETED.value:
            points = calculate_points(
                prediction.predicted_home_score,
                prediction.predicted_away_score,
                home_score,
                away_score,
                match.multiplier,
            )
        (
            client.table("predictions")
            .update({"points_earned": points})
            .eq("id", prediction.id)
            .execute()
        )

    logger.info(
        "Match settled",
        extra={
            "match_id": match_id,
            "status": new_status,
            "unscoring": unscoring,
            "predictions": len(predictions),
        },
    )
    return len(predictions)


def reset_incomplete_predictions(client: Client) -> dict[str, Any]:
    """Zero the points of every prediction on a match that is not completed."""
    match_ids = [
        row["id"]
        for row in fetch_all(
            client.table("matches").select("id").neq("status", MatchStatus.COMPLETED.value)
        )
    ]
    if not match_ids:
        return {
            "success": True,
            "message": "No non-completed matches found",
            "updatedCount": 0,
        }

    client.table("predictions").update({"points_earned": 0}).in_("match_id", match_ids).execute()
    logger.info("Reset predictions on non-completed matches", extra={"matches": len(match_ids)})
    return {
        "success": True,
        "message": "Successfully reset predictions for non-completed matches",
        "matchesAffected": len(match_ids),
    }
