import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterator, Optional

from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from config import settings
from middleware.error_handler import BackendException

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase() -> Client:
    """
    Process-wide Supabase client authenticated with the service role key.

    Row-level security is bypassed with this key, so every handler performs
    its own access checks through ``dependencies.auth``.
    """
    logger.info("Creating Supabase client", extra={"supabase_url": settings.supabase_url})
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


@contextmanager
def backend_call(failure_message: str) -> Iterator[None]:
    """
    Turn PostgREST errors raised inside the block into a 500 carrying a
    user-facing message; the original error stays attached as ``__cause__``
    for logging.
    """
    try:
        yield
    except APIError as exc:
        raise BackendException(failure_message) from exc


def fetch_all(query) -> list[dict[str, Any]]:
    return query.execute().data or []


def fetch_one(query) -> Optional[dict[str, Any]]:
    rows = query.limit(1).execute().data
    return rows[0] if rows else None


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def returned_row(response) -> Optional[dict[str, Any]]:
    """First row of an insert/update/upsert response (PostgREST returns the representation)."""
    return response.data[0] if response.data else None


def new_auth_client() -> Client:
    """
    A throwaway client for flows that establish a user session.

    Signing a user in on the shared client would switch its PostgREST
    credentials from the service role to that user.
    """
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
