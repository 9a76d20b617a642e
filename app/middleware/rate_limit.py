"""Request rate limiting (slowapi).

Each app gets its own ``Limiter`` with in-memory counters, built from the
settings handed to ``create_app``.
"""

import logging

from fastapi import Request
from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import Settings
from app.errors import TooManyRequests

logger = logging.getLogger(__name__)


def build_limiter(settings: Settings) -> Limiter:
    return Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def login_rate_limit(request: Request) -> None:
    """Dependency: count one login attempt per client address against ``LOGIN_RATE_LIMIT``."""
    limiter: Limiter = request.app.state.limiter
    if not limiter.enabled:
        return
    limit = parse(request.app.state.settings.LOGIN_RATE_LIMIT)
    key = get_remote_address(request)
    if not limiter.limiter.hit(limit, key, "login"):
        logger.warning("Login rate limit %s exceeded for %s", limit, key)
        raise TooManyRequests(f"Too many requests, limit is {limit}")
