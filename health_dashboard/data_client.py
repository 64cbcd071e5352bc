"""
Read-only proxy to the Strava and Oura REST APIs.

Responses are passed through untouched. A 401 from the provider clears the
stored access token so the status endpoint reports the provider as
disconnected and the UI restarts the OAuth flow. Nothing is retried and the
refresh grant is never invoked from here.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import httpx

from .errors import AuthorizationExpiredError, NotAuthenticatedError, UpstreamError
from .providers import Resource, get_adapter
from .tokens import TokenStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def date_window(now: datetime, days: int) -> Dict[str, str]:
    """start_date/end_date params covering the last `days` days up to today."""
    end = now.date()
    start = end - timedelta(days=days)
    return {"start_date": start.isoformat(), "end_date": end.isoformat()}


class ProviderDataClient:

    def __init__(self, token_store: TokenStore, clock: Clock = utc_now,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token_store = token_store
        self.clock = clock
        self._transport = transport

    def build_params(self, resource: Resource) -> Dict[str, str]:
        params = dict(resource.params)
        if resource.window_days:
            params.update(date_window(self.clock(), resource.window_days))
        return params

    async def fetch(self, provider: str, resource_name: str) -> Any:
        adapter = get_adapter(provider)
        resource = adapter.resource(resource_name)

        access_token = self.token_store.get(provider).access_token
        if not access_token:
            raise NotAuthenticatedError(f"{adapter.label} not connected")

        url = f"{adapter.api_base}{resource.path}"
        params = self.build_params(resource)

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.get(
                    url,
                    headers={"Authorization": f"Bearer {access_token}"},
                    params=params,
                )

            if response.status_code == 401:
                # Token expired, revoked or missing scope: need re-auth
                logger.warning(f"{adapter.label} rejected access token for {resource_name}; clearing it")
                self.token_store.clear_access(provider)
                raise AuthorizationExpiredError(f"{adapter.label} authorization required")

            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"{adapter.label} {resource_name} request failed: {e.response.status_code} - {e.response.text[:200]}")
            raise UpstreamError(str(e))
        except httpx.RequestError as e:
            logger.error(f"{adapter.label} {resource_name} connection error: {e}")
            raise UpstreamError(f"Connection error: {e}")
        except ValueError as e:
            logger.error(f"{adapter.label} {resource_name} returned invalid JSON: {e}")
            raise UpstreamError(f"Invalid JSON from {adapter.label}: {e}")
