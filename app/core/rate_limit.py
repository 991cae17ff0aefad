from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# RATE_LIMIT_ENABLED=0 turns the limiter off but leaves the decorators in place.
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit(limit: str | None = None):
    """Per-client limit for an AI-backed route, ``RATE_LIMIT`` unless the route passes its own."""
    return limiter.limit(limit or settings.rate_limit)


def interview_rate_limit():
    """Interview turns are short and frequent, so they get their own budget."""
    return rate_limit(settings.interview_rate_limit)
