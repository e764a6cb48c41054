"""
Rate limiting (slowapi).

The limiter lives here rather than in app.main so route modules can
decorate their handlers without importing the application.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

GENERAL_LIMIT = "60/minute"
# Analysis endpoints fan out to ESPN once per game on the slate
ANALYSIS_LIMIT = "20/minute"


def client_key(request: Request) -> str:
    """First hop of X-Forwarded-For behind the proxy, else the peer address."""
    hops = [h.strip() for h in request.headers.get("X-Forwarded-For", "").split(",") if h.strip()]
    return hops[0] if hops else get_remote_address(request)


limiter = Limiter(
    key_func=client_key,
    default_limits=[GENERAL_LIMIT],
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
