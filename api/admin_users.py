from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictBool
from supabase import Client

from core.supabase_client import backend_call, get_supabase
from dependencies.auth import require_admin
from middleware.error_handler import BadRequestException
from models import User, UserStatus
from services import users as user_service

router = APIRouter(dependencies=[Depends(require_admin)])


class PermissionsRequest(BaseModel):
    is_admin: StrictBool


class StatusRequest(BaseModel):
    status: UserStatus


@router.get("/users", summary="All users with activity stats (emails masked)")
def list_users(supabase: Client = Depends(get_supabase)):
    with backend_call("Failed to fetch users"):
        return user_service.list_users_with_stats(supabase)


@router.patch("/users/{user_id}/permissions")
def update_permissions(
    user_id: str, body: PermissionsRequest, supabase: Client = Depends(get_supabase)
):
    with backend_call("Failed to update user permissions"):
        user_service.update_user_admin(supabase, user_id, body.is_admin)
    return {"success": True, "is_admin": body.is_admin}


@router.patch("/users/{user_id}/status")
def update_status(user_id: str, body: StatusRequest, supabase: Client = Depends(get_supabase)):
    """Deactivated users cannot sign in or predict and drop out of rankings."""
    with backend_call("Failed to update user status"):
        user_service.update_user_status(supabase, user_id, body.status)
    return {"success": True, "status": body.status.value}


@router.delete("/users/{user_id}", summary="Permanently delete a user and their data")
def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    supabase: Client = Depends(get_supabase),
):
    if user_id == admin.id:
        raise BadRequestException("You cannot delete your own account")
    with backend_call("Failed to delete user"):
        user_service.delete_user(supabase, user_id)
    return {"success": True}
