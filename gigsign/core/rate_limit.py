"""Per-IP throttling for the public contract links (slowapi, fixed window)."""

from fastapi import Request
from slowapi import Limiter

from gigsign.core.config import settings
from gigsign.core.security import client_ip

# Opening a link is cheap; approving and signing are not.
VIEW_LIMIT = "10/minute"
ACTION_LIMIT = "3/minute"


def client_key(request: Request) -> str:
    return client_ip(request) or "unknown"


limiter = Limiter(
    key_func=client_key,
    enabled=settings.rate_limit_enabled,
    storage_uri=settings.rate_limit_storage_uri,
)
