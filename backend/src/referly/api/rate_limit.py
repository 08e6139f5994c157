"""Rate limiting configuration for Referly API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Single shared limiter instance; create_app enables it in production only
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=False,
)
