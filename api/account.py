from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    AuthUser,
    get_current_user,
    require_active_user,
)
from middleware.error_handler import BadRequestException
from models import PublicUser, User, UserStatus
from services.privacy import sanitize_user_for_public
from services.users import sign_out_everywhere, update_profile, update_user_status

router = APIRouter()


class ProfileRequest(BaseModel):
    screen_name: Optional[str] = Field(None, max_length=50)
    avatar_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("screen_name")
    @classmethod
    def strip_screen_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Screen name cannot be blank")
        return value


@router.patch("/profile", summary="Update the caller's screen name or avatar")
def update_own_profile(
    body: ProfileRequest,
    profile: User = Depends(require_active_user),
    supabase: Client = Depends(get_supabase),
) -> PublicUser:
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise BadRequestException("Nothing to update")
    with backend_call("Failed to update profile"):
        updated = update_profile(supabase, profile.id, fields)
    return sanitize_user_for_public(updated)


@router.post("/deactivate", summary="Deactivate the caller's own account")
def deactivate_account(
    user: AuthUser = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
) -> JSONResponse:
    """
    Sets the caller's status to deactivated and ends their sessions.
    Predictions and other history are kept; the user drops out of rankings
    and can no longer sign in or predict.
    """
    with backend_call("Failed to deactivate account"):
        update_user_status(supabase, user.id, UserStatus.DEACTIVATED)

    sign_out_everywhere(supabase, user.access_token)

    response = JSONResponse({"success": True, "message": "Account deactivated successfully"})
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return response
