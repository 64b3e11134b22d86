"""Rate limiting for anonymous endpoints using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client address: the negotiate endpoint has no authenticated user.
limiter = Limiter(key_func=get_remote_address)


def reset_limiter() -> None:
    """Clear stored hit counters. Used in tests to isolate rate limit state."""
    limiter.reset()
