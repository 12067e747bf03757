"""Rate limiting configuration."""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def get_client_ip(request):
    """Get client IP for rate limiting, considering proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


# Uses Redis if REDIS_URL is set, falls back to memory for a single process
limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Limits are per client IP and sized for a whole room behind one venue NAT
RATE_LIMITS = {
    "join": "300/minute",
    "submit_question": "120/minute",
    "vote": "600/minute",
    "poll_response": "600/minute",
    "heartbeat": "1200/minute",
}
