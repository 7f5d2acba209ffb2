"""
Access-control dependencies.

Gates compose in order: ``get_current_user`` (401 without a valid session),
``require_active_user`` (403 for deactivated accounts) and ``require_admin``
(403 unless ``is_admin``). A handler depends on the strictest gate it needs.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client

from core.auth import verify_access_token
from core.supabase_client import backend_call, get_supabase
from middleware.error_handler import ForbiddenException
from models import User
from services.users import get_user, sign_out_everywhere

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"

security = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    access_token: str


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_current_user(token: Optional[str] = Depends(get_access_token)) -> AuthUser:
    claims = verify_access_token(token)
    return AuthUser(id=claims["sub"], email=claims.get("email"), access_token=token)


def get_current_profile(
    user: AuthUser = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
) -> User:
    with backend_call("Failed to load user profile"):
        profile = get_user(supabase, user.id)
    if profile is None:
        logger.warning("Authenticated user has no profile row", extra={"user_id": user.id})
        raise ForbiddenException("User profile not found", "PROFILE_MISSING")
    return profile


def require_active_user(
    user: AuthUser = Depends(get_current_user),
    profile: User = Depends(get_current_profile),
    supabase: Client = Depends(get_supabase),
) -> User:
    if not profile.is_active:
        logger.info("Deactivated user rejected", extra={"user_id": profile.id})
        sign_out_everywhere(supabase, user.access_token)
        raise ForbiddenException(
            "Account deactivated. Please contact an administrator.",
            "ACCOUNT_DEACTIVATED",
        )
    return profile


def require_admin(profile: User = Depends(require_active_user)) -> User:
    if not profile.is_admin:
        raise ForbiddenException("Forbidden: Admin access required", "ADMIN_REQUIRED")
    return profile
