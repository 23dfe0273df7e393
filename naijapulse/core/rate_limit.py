"""Rate limiting configuration."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from naijapulse.core.config import settings


def get_client_ip(request):
    """Get client IP for rate limiting, considering proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


# Uses Redis if REDIS_URL is set, falls back to memory for local dev
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["300/minute"],
    storage_uri=settings.REDIS_URL or "memory://",
    strategy="fixed-window"
)

RATE_LIMITS = {
    # Public writes
    "vote": "30/minute",
    "comment": "20/minute",
    "report": "10/minute",
    "create_poll": "10/minute",
    "profile_write": "20/minute",

    # Reads
    "poll_read": "300/minute",

    # Admin
    "admin_read": "200/minute",
    "admin_write": "100/minute",
}
