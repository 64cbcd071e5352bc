from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings


def create_limiter(settings: Settings) -> Limiter:
    # One limiter (and in-memory counter store) per app
    return Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
