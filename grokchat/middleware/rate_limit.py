"""
Per-client rate limiting for the routes that hit the model provider.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from grokchat.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def model_call_limit() -> str:
    """Read per request so RATE_LIMIT_PER_MINUTE changes apply without a restart."""
    return f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
