"""
Supabase access-token verification.

Tokens issued by Supabase Auth are HS256 JWTs signed with the project's JWT
secret and carry ``aud = "authenticated"``. They are verified locally, so a
request costs no round trip to the auth server. Deactivation is enforced
separately against the ``users`` row, since a token stays valid until it
expires.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidSignatureError,
    InvalidTokenError,
)

from config import settings
from middleware.error_handler import UnauthorizedException

logger = logging.getLogger(__name__)

JWT_AUDIENCE = "authenticated"
JWT_ALGORITHMS = ["HS256"]
LEEWAY_SECONDS = 10

_DECODE_OPTIONS: dict[str, Any] = {"require": ["sub", "exp"]}

# Most specific first; the first matching class decides the response.
_FAILURES: list[tuple[type[InvalidTokenError], int, str]] = [
    (ExpiredSignatureError, logging.INFO, "Session has expired. Please sign in again."),
    (ImmatureSignatureError, logging.WARNING, "Session token is not yet valid."),
    (InvalidSignatureError, logging.WARNING, "Session token is invalid."),
    (DecodeError, logging.WARNING, "Session token could not be decoded."),
    (InvalidTokenError, logging.WARNING, "Session token is invalid."),
]


def decode_access_token(token: str, secret: str) -> dict[str, Any]:
    """Verify signature, audience, expiry and required claims."""
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=JWT_ALGORITHMS,
            audience=JWT_AUDIENCE,
            leeway=LEEWAY_SECONDS,
            options=_DECODE_OPTIONS,
        )
    except InvalidTokenError as exc:
        for error_type, level, message in _FAILURES:
            if isinstance(exc, error_type):
                logger.log(level, "Rejected access token (%s): %s", type(exc).__name__, exc)
                raise UnauthorizedException(message) from exc
        raise


def verify_access_token(token: Optional[str], secret: Optional[str] = None) -> dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Raises UnauthorizedException when the token is missing, expired, signed
    with another secret or issued for another audience.
    """
    if not token:
        raise UnauthorizedException("Unauthorized: Authentication required")

    claims = decode_access_token(token, secret or settings.supabase_jwt_secret)
    logger.debug(
        "Access token verified",
        extra={
            "user_id": claims["sub"],
            "expires_in": max(0, int(claims["exp"]) - int(time.time())),
        },
    )
    return claims
