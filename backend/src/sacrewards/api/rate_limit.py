"""Rate limits for the public authentication endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from sacrewards.settings import Settings

REGISTER_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"

# Route decorators bind to this instance at import time; create_app switches it on
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=False,
)


def configure_limiter(config: Settings) -> Limiter:
    """Enable limits for production apps only and start from empty counters."""
    limiter.enabled = config.is_production
    limiter.reset()
    return limiter
