import logging
import os
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from ..exceptions import DomainException

logger = logging.getLogger(__name__)


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _sample_rate(env_var: str) -> float:
    raw_value = _env(env_var)
    if raw_value is None:
        return 0.0
    try:
        value = float(raw_value)
    except ValueError:
        logger.warning("%s is not a valid float (got %r); sampling disabled", env_var, raw_value)
        return 0.0
    if not 0 <= value <= 1:
        logger.warning("%s must be within [0, 1] (got %s); sampling disabled", env_var, value)
        return 0.0
    return value


def drop_expected_errors(event: dict[str, Any], hint: dict[str, Any]) -> Optional[dict[str, Any]]:
    """``before_send`` hook: 4xx match errors (bad token, stale version) are not incidents."""
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], DomainException):
        return None
    return event


def init_sentry() -> bool:
    """Configure Sentry from ``SENTRY_*`` variables. Returns whether it was enabled."""
    dsn = _env("SENTRY_DSN")
    if dsn is None:
        logger.info("SENTRY_DSN not provided; skipping Sentry initialization.")
        return False

    environment = _env("SENTRY_ENVIRONMENT")
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FastApiIntegration()],
        environment=environment,
        release=_env("SENTRY_RELEASE"),
        traces_sample_rate=_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
        before_send=drop_expected_errors,
    )
    logger.info("Initialized Sentry (environment=%s)", environment or "default")
    return True
