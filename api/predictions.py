import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import AuthUser, get_current_user, require_active_user
from engine.scoring import get_base_points, get_points_description
from models import Prediction, User
from services.matches import get_matches_by_id
from services.predictions import check_eligibility, list_user_predictions, upsert_prediction

logger = logging.getLogger(__name__)

router = APIRouter()


class PredictionRequest(BaseModel):
    """A user's predicted final score for one match."""

    match_id: str = Field(..., min_length=1)
    predicted_home_score: int = Field(..., ge=0)
    predicted_away_score: int = Field(..., ge=0)


class PredictionResult(BaseModel):
    prediction: Prediction
    description: Optional[str] = None


@router.post(
    "",
    response_model=Prediction,
    summary="Create or update the caller's prediction for a match",
    responses={
        401: {"description": "No valid session"},
        403: {"description": "Not a participant, match locked or account deactivated"},
        404: {"description": "Match not found"},
    },
)
def submit_prediction(
    body: PredictionRequest,
    profile: User = Depends(require_active_user),
    supabase: Client = Depends(get_supabase),
) -> Prediction:
    with backend_call("Failed to save prediction"):
        check_eligibility(supabase, profile.id, body.match_id)
        return upsert_prediction(
            supabase,
            profile.id,
            body.match_id,
            body.predicted_home_score,
            body.predicted_away_score,
        )


@router.get("", response_model=list[PredictionResult], summary="List the caller's predictions")
def my_predictions(
    tournament_id: Optional[str] = Query(None),
    user: AuthUser = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
) -> list[PredictionResult]:
    """
    Every prediction of the caller, optionally limited to one tournament.
    Settled predictions carry a short description of how they scored.
    """
    with backend_call("Failed to fetch predictions"):
        predictions = list_user_predictions(supabase, user.id, tournament_id)
        matches = get_matches_by_id(supabase, [p.match_id for p in predictions])
    results = []
    for prediction in predictions:
        description = None
        match = matches.get(prediction.match_id)
        if match is not None and match.is_settled:
            base = get_base_points(
                prediction.predicted_home_score,
                prediction.predicted_away_score,
                match.home_score,
                match.away_score,
            )
            description = get_points_description(base, match.multiplier)
        results.append(PredictionResult(prediction=prediction, description=description))
    return results
