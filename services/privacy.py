"""
Helpers that keep personal data out of public responses.

Email addresses are never returned by public endpoints, and admin views only
ever see them masked. Users without a screen name are shown as
``Player #XXXXX`` built from the tail of their id.
"""

from models import PublicUser, User


def generate_anonymous_name(user_id: str) -> str:
    return f"Player #{user_id[-5:].upper()}"


def get_public_display_name(user: User | PublicUser) -> str:
    if user.screen_name:
        return user.screen_name
    return generate_anonymous_name(user.id)


def mask_email(email: str) -> str:
    """``john@example.com`` -> ``jo***@example.com``; one-letter locals keep one letter."""
    local, _, domain = email.partition("@")
    if not local or not domain:
        return "***@***"
    visible = 1 if len(local) == 1 else 2
    return f"{local[:visible]}***@{domain}"


def sanitize_user_for_public(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        screen_name=user.screen_name,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
