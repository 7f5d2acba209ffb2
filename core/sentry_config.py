import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from config import settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """
    Initialize Sentry for production monitoring.

    Returns False without touching the SDK when no DSN is configured.
    """
    if not settings.sentry_dsn:
        logger.info("Sentry disabled (no DSN configured)")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        environment=settings.api_env,
        send_default_pii=False,
        integrations=[StarletteIntegration(), FastApiIntegration()],
    )
    return True
