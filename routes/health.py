"""
Liveness, readiness and a full component report.

The report probes PostgREST with a one-row read and, when rate-limit counters
live in Redis, pings that Redis. A slow but successful database round trip
reports ``degraded`` and still answers 200; any failed probe answers 503.
"""

import platform
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
import psutil
import redis
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from pydantic import BaseModel
from supabase import Client

from config import settings
from core.supabase_client import get_supabase

router = APIRouter(prefix="/health", tags=["Health"])

_START_TIME = time.time()

SLOW_DATABASE_MS = 750.0


class ComponentHealth(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    latency_ms: Optional[float] = None
    detail: Optional[str] = None


class SystemMetrics(BaseModel):
    cpu_percent: float
    memory_percent: float
    memory_available_mb: float
    python_version: str
    os: str


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    uptime_seconds: float
    timestamp: str
    components: dict[str, ComponentHealth]
    system: SystemMetrics


async def _probe(fn: Callable[[], object], errors: tuple, slow_ms: float | None = None) -> ComponentHealth:
    started = time.perf_counter()
    try:
        await run_in_threadpool(fn)
    except errors as exc:
        return ComponentHealth(status="unhealthy", detail=str(exc))
    elapsed = round((time.perf_counter() - started) * 1000, 2)
    if slow_ms is not None and elapsed > slow_ms:
        return ComponentHealth(status="degraded", latency_ms=elapsed, detail="slow response")
    return ComponentHealth(status="healthy", latency_ms=elapsed)


async def check_database(client: Client) -> ComponentHealth:
    """One-row read from ``tournaments`` through PostgREST."""
    return await _probe(
        lambda: client.table("tournaments").select("id").limit(1).execute(),
        (APIError, httpx.HTTPError),
        slow_ms=SLOW_DATABASE_MS,
    )


async def check_rate_limit_storage(storage_uri: str | None = None) -> ComponentHealth:
    uri = storage_uri or settings.rate_limit_storage_uri
    if not uri.startswith(("redis://", "rediss://")):
        return ComponentHealth(status="healthy", detail="in-process counters")
    conn = redis.Redis.from_url(uri, socket_connect_timeout=1, socket_timeout=1)
    try:
        return await _probe(conn.ping, (redis.RedisError,))
    finally:
        conn.close()


def get_system_metrics() -> SystemMetrics:
    mem = psutil.virtual_memory()
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=mem.percent,
        memory_available_mb=round(mem.available / 1_048_576, 1),
        python_version=platform.python_version(),
        os=platform.system(),
    )


def overall_status(components: dict[str, ComponentHealth]) -> str:
    statuses = {c.status for c in components.values()}
    for level in ("unhealthy", "degraded"):
        if level in statuses:
            return level
    return "healthy"


@router.get(
    "",
    summary="Component health report",
    response_model=HealthResponse,
    responses={503: {"description": "A component probe failed"}},
)
async def health_check(supabase: Client = Depends(get_supabase)) -> JSONResponse:
    components = {
        "database": await check_database(supabase),
        "rate_limit_storage": await check_rate_limit_storage(),
    }
    overall = overall_status(components)
    report = HealthResponse(
        status=overall,
        version=settings.api_version,
        environment=settings.api_env,
        uptime_seconds=round(time.time() - _START_TIME, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
        system=get_system_metrics(),
    )
    code = status.HTTP_503_SERVICE_UNAVAILABLE if overall == "unhealthy" else status.HTTP_200_OK
    return JSONResponse(content=report.model_dump(), status_code=code)


@router.get("/live", summary="Liveness probe")
async def liveness() -> dict:
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ready", summary="Readiness probe: the database answers")
async def readiness(supabase: Client = Depends(get_supabase)) -> dict:
    database = await check_database(supabase)
    if database.status == "unhealthy":
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="database unavailable")
    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
