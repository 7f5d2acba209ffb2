"""
Request rate limiting.

A single slowapi ``Limiter`` applies ``RATE_LIMIT_DEFAULT`` to every route
through ``SlowAPIASGIMiddleware``. Counters live in ``RATE_LIMIT_STORAGE_URI``:
``memory://`` for a single process, ``redis://host:6379/0`` when the API runs
on several instances.

Callers with a bearer token that verifies against the project secret are
keyed by its ``sub`` so that users behind one NAT do not share a bucket;
everyone else, including callers with forged or expired tokens, is keyed by IP.
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from config import settings
from core.auth import decode_access_token
from middleware.error_handler import UnauthorizedException

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            claims = decode_access_token(token, settings.supabase_jwt_secret)
        except UnauthorizedException:
            claims = {}
        if claims.get("sub"):
            return f"user:{claims['sub']}"
    return f"ip:{get_remote_address(request)}"


def build_limiter(default_limit: str | None = None, storage_uri: str | None = None,
                  enabled: bool | None = None) -> Limiter:
    return Limiter(
        key_func=rate_limit_key,
        default_limits=[default_limit or settings.rate_limit_default],
        storage_uri=storage_uri or settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled if enabled is None else enabled,
        headers_enabled=False,
    )


limiter = build_limiter()
