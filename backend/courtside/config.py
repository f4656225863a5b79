import logging
import os

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_seconds(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid number (got %r); defaulting to %.1f",
            env_var,
            raw_value,
            default,
        )
        return default
    if value < 0:
        logger.warning("%s cannot be negative; defaulting to %.1f", env_var, default)
        return default
    return value


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Viewers open {SHARE_BASE_URL}/view/{matchId}
SHARE_BASE_URL = (os.getenv("SHARE_BASE_URL") or "http://localhost:3030").rstrip("/")

VIEWER_CACHE_TTL_SECONDS = _parse_seconds("VIEWER_CACHE_TTL_SECONDS", 2.0)

EVENT_RATE_LIMIT = os.getenv("EVENT_RATE_LIMIT") or "120/minute"


def rate_limits_disabled() -> bool:
    return (os.getenv("DISABLE_RATE_LIMITS") or "").lower() == "true"


def cors_settings() -> tuple[list[str], bool]:
    """Read ``ALLOWED_ORIGINS`` / ``ALLOW_CREDENTIALS``.

    Scorekeeper and viewer front-ends live on known hosts, so an explicit,
    non-wildcard origin list is mandatory; a missing or ``*`` value raises
    ``ValueError`` and stops the app from starting.
    """

    raw = (os.getenv("ALLOWED_ORIGINS") or "").strip()
    if not raw:
        raise ValueError(
            "ALLOWED_ORIGINS environment variable must be set to a comma-separated "
            "list of trusted origins."
        )
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not origins:
        raise ValueError("ALLOWED_ORIGINS must contain at least one non-empty origin.")
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    allow_credentials = (os.getenv("ALLOW_CREDENTIALS") or "true").lower() == "true"
    return origins, allow_credentials
