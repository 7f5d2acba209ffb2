import logging
from typing import Any, Optional

from supabase import AuthError, Client

from core.supabase_client import fetch_all, fetch_one, returned_row, utc_now
from middleware.error_handler import NotFoundException
from models import User, UserStatus
from services.privacy import mask_email

logger = logging.getLogger(__name__)


def get_user(client: Client, user_id: str) -> Optional[User]:
    row = fetch_one(client.table("users").select("*").eq("id", user_id))
    return User.model_validate(row) if row else None


def sign_out_everywhere(client: Client, access_token: str) -> None:
    """Revoke every refresh token of the session owner."""
    try:
        client.auth.admin.sign_out(access_token)
    except AuthError as exc:
        # The access token is short-lived; a failed revoke only delays the
        # sign-out until it expires.
        logger.warning("Supabase sign-out failed: %s", exc)


def update_user_status(client: Client, user_id: str, status: UserStatus) -> User:
    response = (
        client.table("users")
        .update({"status": UserStatus(status).value, "updated_at": utc_now()})
        .eq("id", user_id)
        .execute()
    )
    row = returned_row(response)
    if row is None:
        raise NotFoundException("User not found")
    logger.info("User status changed", extra={"user_id": user_id, "status": UserStatus(status).value})
    return User.model_validate(row)


def update_user_admin(client: Client, user_id: str, is_admin: bool) -> User:
    response = client.table("users").update({"is_admin": is_admin}).eq("id", user_id).execute()
    row = returned_row(response)
    if row is None:
        raise NotFoundException("User not found")
    logger.info("User permissions changed", extra={"user_id": user_id, "is_admin": is_admin})
    return User.model_validate(row)


def list_users_with_stats(client: Client) -> list[dict[str, Any]]:
    """All users, newest first, each with prediction and ranking totals."""
    users = [
        User.model_validate(row)
        for row in fetch_all(client.table("users").select("*").order("created_at", desc=True))
    ]
    result = []
    for user in users:
        predictions = (
            client.table("predictions")
            .select("id", count="exact")
            .eq("user_id", user.id)
            .execute()
        )
        rankings = fetch_all(
            client.table("tournament_rankings")
            .select("tournament_id, total_points")
            .eq("user_id", user.id)
        )
        entry = user.model_dump(mode="json")
        if user.email:
            entry["email"] = mask_email(user.email)
        entry["stats"] = {
            "prediction_count": predictions.count or 0,
            "tournament_count": len(rankings),
            "total_points": sum(r.get("total_points") or 0 for r in rankings),
        }
        result.append(entry)
    return result


def update_profile(client: Client, user_id: str, fields: dict[str, Any]) -> User:
    """Apply the caller's own display fields (screen name, avatar)."""
    response = (
        client.table("users")
        .update({**fields, "updated_at": utc_now()})
        .eq("id", user_id)
        .execute()
    )
    row = returned_row(response)
    if row is None:
        raise NotFoundException("User not found")
    logger.info("User profile updated", extra={"user_id": user_id, "fields": sorted(fields)})
    return User.model_validate(row)


def delete_user(client: Client, user_id: str) -> None:
    """
    Permanently remove a user and everything that hangs off them.

    The ``users`` foreign keys cascade in the hosted schema; predictions and
    participations are still removed first so the result does not depend on it.
    Rankings are a view and drop the user on their own.
    """
    if get_user(client, user_id) is None:
        raise NotFoundException("User not found")
    client.table("predictions").delete().eq("user_id", user_id).execute()
    client.table("tournament_participants").delete().eq("user_id", user_id).execute()
    client.table("users").delete().eq("id", user_id).execute()
    logger.warning("User hard-deleted", extra={"user_id": user_id})
