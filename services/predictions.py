"""
Prediction eligibility and writes.

The write path is a single upsert keyed on ``(user_id, match_id)``; the
``predictions`` table carries a unique constraint on that pair, so two
concurrent submissions for the same match end up as one row.
"""

import logging
from datetime import datetime
from typing import Optional

from supabase import Client

from core.supabase_client import fetch_all, returned_row, utc_now
from middleware.error_handler import ForbiddenException, NotFoundException
from models import Match, Prediction
from services.matches import get_match
from services.prediction_lock import is_match_locked
from services.tournaments import is_participant

logger = logging.getLogger(__name__)

PREDICTION_CONFLICT_KEY = "user_id,match_id"


def check_eligibility(
    client: Client, user_id: str, match_id: str, now: Optional[datetime] = None
) -> Match:
    """
    Decide whether ``user_id`` may predict ``match_id``.

    Returns the match when allowed. Raises NotFoundException for an unknown
    match and ForbiddenException (``NOT_PARTICIPANT`` or ``MATCH_LOCKED``)
    otherwise.
    """
    match = get_match(client, match_id)
    if match is None:
        raise NotFoundException("Match not found")

    if not is_participant(client, match.tournament_id, user_id):
        raise ForbiddenException(
            "You must be a tournament participant to submit predictions",
            "NOT_PARTICIPANT",
        )

    if is_match_locked(match, now):
        raise ForbiddenException(
            "Predictions are closed for this match",
            "MATCH_LOCKED",
        )

    return match


def upsert_prediction(
    client: Client,
    user_id: str,
    match_id: str,
    predicted_home_score: int,
    predicted_away_score: int,
) -> Prediction:
    # points_earned belongs to match settlement and is never written here.
    payload = {
        "user_id": user_id,
        "match_id": match_id,
        "predicted_home_score": predicted_home_score,
        "predicted_away_score": predicted_away_score,
        "updated_at": utc_now(),
    }
    response = (
        client.table("predictions")
        .upsert(payload, on_conflict=PREDICTION_CONFLICT_KEY)
        .execute()
    )
    row = returned_row(response)
    if row is None:
        raise RuntimeError("Prediction upsert returned no row")
    logger.info(
        "Prediction saved",
        extra={"user_id": user_id, "match_id": match_id},
    )
    return Prediction.model_validate(row)


def list_user_predictions(
    client: Client, user_id: str, tournament_id: Optional[str] = None
) -> list[Prediction]:
    query = client.table("predictions").select("*").eq("user_id", user_id)
    if tournament_id:
        match_ids = [
            row["id"]
            for row in fetch_all(
                client.table("matches").select("id").eq("tournament_id", tournament_id)
            )
        ]
        if not match_ids:
            return []
        query = query.in_("match_id", match_ids)
    return [Prediction.model_validate(row) for row in fetch_all(query)]
