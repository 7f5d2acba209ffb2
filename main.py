from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIASGIMiddleware

from config_validator import validate_env

validate_env()

from api import (
    account,
    admin_matches,
    admin_teams,
    admin_tournaments,
    admin_users,
    auth_callback,
    matches,
    predictions,
    teams,
    tournaments,
)
from config import settings
from core.logging_config import setup_logging
from core.rate_limit import limiter
from core.sentry_config import init_sentry
from middleware.error_handler import add_exception_handlers, request_id_middleware
from routes.health import router as health_router

# ---------------------------------------------------------------------------
# Logging: configure before anything else logs
# ---------------------------------------------------------------------------

setup_logging(settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------

init_sentry()


# ---------------------------------------------------------------------------
# Application Lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Predictor API starting",
        extra={"environment": settings.api_env, "version": settings.api_version},
    )
    yield
    logger.info("Predictor API shutting down")


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    application = FastAPI(
        title="Predictor API",
        description=(
            "Football score predictions for invite-only tournaments: "
            "participants, fixtures, rankings and match settlement."
        ),
        version=settings.api_version,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------

    application.state.limiter = limiter
    application.add_middleware(SlowAPIASGIMiddleware)

    # -------------------------------------------------------------------
    # Middleware  (outermost → innermost)
    # -------------------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    application.middleware("http")(request_id_middleware)

    @application.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        start = time.perf_counter()
        correlation_id = request.headers.get("X-Correlation-ID", "-")
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1_000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=63072000; includeSubDomains"
            )
        logger.debug(
            "Request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "correlation_id": correlation_id,
            },
        )
        return response

    # -------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------

    add_exception_handlers(application)

    # -------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------

    # System
    application.include_router(health_router, tags=["System"])

    # Auth
    application.include_router(auth_callback.router, prefix="/auth", tags=["Auth"])
    application.include_router(account.router, prefix="/api/account", tags=["Account"])

    # Public / participant
    application.include_router(tournaments.router, prefix="/api/tournaments", tags=["Tournaments"])
    application.include_router(matches.router, prefix="/api/matches", tags=["Matches"])
    application.include_router(teams.router, prefix="/api/teams", tags=["Teams"])
    application.include_router(predictions.router, prefix="/api/predictions", tags=["Predictions"])

    # Admin
    application.include_router(admin_tournaments.router, prefix="/api/admin", tags=["Admin"])
    application.include_router(admin_matches.router, prefix="/api/admin", tags=["Admin"])
    application.include_router(admin_teams.router, prefix="/api/admin", tags=["Admin"])
    application.include_router(admin_users.router, prefix="/api/admin", tags=["Admin"])

    # -------------------------------------------------------------------
    # Core Routes
    # -------------------------------------------------------------------

    @application.get("/", tags=["System"], summary="Root liveness check")
    def root() -> dict[str, str]:
        """Returns a quick confirmation that the API process is alive."""
        return {"status": "Predictor API running"}

    return application


# ---------------------------------------------------------------------------
# App Instance
# ---------------------------------------------------------------------------

app = create_app()

# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
