import logging
from typing import Mapping, Optional
from urllib.parse import quote

import httpx
from fastapi import Request

from .config import Settings
from .errors import ConfigurationError, NotAuthenticatedError, OAuthError
from .providers import JSON_BODY, ProviderAdapter, get_adapter
from .tokens import TokenPair, TokenStore

logger = logging.getLogger(__name__)


def build_auth_url(adapter: ProviderAdapter, client_id: str, redirect_uri: str) -> str:
    """
    Returns the provider OAuth URL.
    Frontend should redirect the user to this URL.
    """
    if not client_id:
        raise ConfigurationError(
            f"Server misconfiguration: Missing {adapter.name.upper()}_CLIENT_ID"
        )

    params = {
        "client_id": client_id,
        "redirect_uri": quote(redirect_uri, safe=""),
        "response_type": "code",
        **adapter.extra_auth_params,
    }

    # Scope is appended as-is so the provider's separator ("," or "+") survives
    query_string = "&".join([f"{k}={v}" for k, v in params.items()])
    return f"{adapter.auth_endpoint}?{query_string}&scope={adapter.scope}"


def resolve_base_url(configured: str, headers: Mapping[str, str], scheme: str, host: str) -> str:
    """
    Prefer an explicit BASE_URL; otherwise trust the reverse proxy's forwarded
    headers and fall back to the connection itself.
    """
    if configured:
        return configured.rstrip("/")
    protocol = headers.get("x-forwarded-proto") or scheme
    forwarded_host = headers.get("x-forwarded-host") or host
    return f"{protocol}://{forwarded_host}"


def redirect_uri_override(adapter: ProviderAdapter, settings: Settings) -> str:
    return getattr(settings, f"{adapter.name.upper()}_REDIRECT_URI", "") or ""


def resolve_redirect_uri(adapter: ProviderAdapter, settings: Settings, request: Request) -> str:
    override = redirect_uri_override(adapter, settings)
    if override:
        return override
    base_url = resolve_base_url(
        settings.BASE_URL,
        request.headers,
        request.url.scheme,
        request.headers.get("host") or request.url.netloc,
    )
    return f"{base_url}{adapter.callback_path}"


def describe_oauth_error(response: httpx.Response) -> str:
    """Pull the most useful message out of a token endpoint error payload."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(payload, dict):
        for key in ("detail", "error_description", "error", "message"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return response.text or f"HTTP {response.status_code}"


class OAuthExchanger:
    """Authorization-code and refresh-token grants against each provider."""

    def __init__(self, settings: Settings, token_store: TokenStore,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.token_store = token_store
        self._transport = transport

    def _credentials(self, adapter: ProviderAdapter) -> dict:
        prefix = adapter.name.upper()
        client_id = getattr(self.settings, f"{prefix}_CLIENT_ID", "")
        client_secret = getattr(self.settings, f"{prefix}_CLIENT_SECRET", "")
        if not client_id or not client_secret:
            raise ConfigurationError(
                f"Server misconfiguration: Missing {prefix}_CLIENT_ID or {prefix}_CLIENT_SECRET"
            )
        return {"client_id": client_id, "client_secret": client_secret}

    async def _post_token(self, adapter: ProviderAdapter, body: dict) -> dict:
        # Strava takes a JSON body, Oura only accepts form-urlencoded
        if adapter.body_encoding == JSON_BODY:
            request_kwargs = {"json": body}
        else:
            request_kwargs = {"data": body}

        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(adapter.token_endpoint, **request_kwargs)
        except httpx.RequestError as e:
            logger.error(f"{adapter.label} token endpoint connection error: {e}")
            raise OAuthError(f"Connection error: {e}")

        if response.status_code != 200:
            reason = describe_oauth_error(response)
            logger.error(f"{adapter.label} token endpoint returned {response.status_code}: {reason}")
            raise OAuthError(reason)

        try:
            data = response.json()
        except ValueError:
            raise OAuthError(f"Invalid response from {adapter.label} token endpoint")
        if not isinstance(data, dict) or not data.get("access_token"):
            raise OAuthError(f"Invalid response from {adapter.label} token endpoint")
        return data

    async def exchange_code(self, provider: str, code: str, redirect_uri: str) -> TokenPair:
        adapter = get_adapter(provider)
        body = {
            "grant_type": "authorization_code",
            "code": code,
            **self._credentials(adapter),
        }
        if adapter.send_redirect_uri:
            body["redirect_uri"] = redirect_uri
            logger.info(f"{adapter.label} token exchange with redirect_uri: {redirect_uri}")

        data = await self._post_token(adapter, body)
        pair = TokenPair(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
        )
        self.token_store.set(provider, pair)
        logger.info(f"{adapter.label} connected! Scopes: {data.get('scope', 'n/a')}")
        return pair

    async def refresh(self, provider: str) -> str:
        adapter = get_adapter(provider)
        current = self.token_store.get(provider)
        if not current.refresh_token:
            raise NotAuthenticatedError(f"{adapter.label} not connected")

        body = {
            "grant_type": "refresh_token",
            "refresh_token": current.refresh_token,
            **self._credentials(adapter),
        }
        data = await self._post_token(adapter, body)
        self.token_store.set(provider, TokenPair(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or current.refresh_token,
        ))
        logger.info(f"Refreshed {adapter.label} access token")
        return data["access_token"]
