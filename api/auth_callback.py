import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from supabase import AuthError, Client

from config import settings
from core.supabase_client import new_auth_client
from dependencies.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_REDIRECT_PATH = "/tournaments"
LOGIN_ERROR_PATH = "/login?error=auth_callback_error"
CODE_VERIFIER_COOKIE = "sb-code-verifier"
REFRESH_TOKEN_MAX_AGE = 60 * 60 * 24 * 30


def safe_redirect_path(next_path: Optional[str]) -> str:
    """Only same-site absolute paths are honoured; anything else falls back."""
    if (
        next_path
        and next_path.startswith("/")
        and not next_path.startswith("//")
        and "\\" not in next_path
    ):
        return next_path
    return DEFAULT_REDIRECT_PATH


def _site_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.site_url.rstrip('/')}{path}", status_code=307)


@router.get("/callback", summary="Exchange an auth code for a session")
def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    next_path: Optional[str] = Query(None, alias="next"),
    supabase: Client = Depends(new_auth_client),
) -> RedirectResponse:
    if not code:
        logger.info("Auth callback without code")
        return _site_redirect(LOGIN_ERROR_PATH)

    params = {"auth_code": code}
    verifier = request.cookies.get(CODE_VERIFIER_COOKIE)
    if verifier:
        params["code_verifier"] = verifier

    try:
        auth_response = supabase.auth.exchange_code_for_session(params)
    except AuthError as exc:
        logger.warning("Auth code exchange failed: %s", exc)
        return _site_redirect(LOGIN_ERROR_PATH)

    session = auth_response.session
    if session is None:
        logger.warning("Auth code exchange returned no session")
        return _site_redirect(LOGIN_ERROR_PATH)

    response = _site_redirect(safe_redirect_path(next_path))
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        session.refresh_token,
        max_age=REFRESH_TOKEN_MAX_AGE,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    logger.info("User signed in", extra={"user_id": session.user.id if session.user else None})
    return response
