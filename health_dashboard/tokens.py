import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .config import Settings
from .providers import OURA, PROVIDERS, STRAVA, get_adapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class TokenStore:
    """
    In-memory access/refresh token pairs, one per provider.

    Pairs are immutable and replaced with a single assignment, so concurrent
    handlers never observe a half-written pair. Nothing is persisted; a
    restart falls back to whatever tokens the environment supplies.
    """

    def __init__(self, pairs: Optional[Dict[str, TokenPair]] = None):
        self._pairs: Dict[str, TokenPair] = {name: TokenPair() for name in PROVIDERS}
        for provider, pair in (pairs or {}).items():
            self.set(provider, pair)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenStore":
        store = cls({
            STRAVA: TokenPair(
                access_token=settings.STRAVA_ACCESS_TOKEN or None,
                refresh_token=settings.STRAVA_REFRESH_TOKEN or None,
            ),
            OURA: TokenPair(
                access_token=settings.OURA_ACCESS_TOKEN or None,
                refresh_token=settings.OURA_REFRESH_TOKEN or None,
            ),
        })
        for provider in PROVIDERS:
            status = "loaded from env" if store.is_connected(provider) else "not set"
            logger.info(f"{get_adapter(provider).label} token: {status}")
        return store

    def get(self, provider: str) -> TokenPair:
        get_adapter(provider)
        return self._pairs[provider]

    def set(self, provider: str, pair: TokenPair) -> None:
        get_adapter(provider)
        self._pairs[provider] = pair

    def clear_access(self, provider: str) -> None:
        self.set(provider, replace(self.get(provider), access_token=None))

    def is_connected(self, provider: str) -> bool:
        return bool(self.get(provider).access_token)
