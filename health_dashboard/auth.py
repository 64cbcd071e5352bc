import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from .config import Settings
from .deps import get_exchanger, get_settings, get_token_store
from .errors import HealthDashboardError
from .oauth import OAuthExchanger, build_auth_url, resolve_redirect_uri
from .providers import get_adapter
from .tokens import TokenStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/{provider}/auth-url")
def get_auth_url(provider: str, request: Request, settings: Settings = Depends(get_settings)):
    adapter = get_adapter(provider)
    redirect_uri = resolve_redirect_uri(adapter, settings, request)
    client_id = getattr(settings, f"{adapter.name.upper()}_CLIENT_ID", "")
    return {"url": build_auth_url(adapter, client_id, redirect_uri)}


@router.get("/callback/{provider}")
async def oauth_callback(
    provider: str,
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    exchanger: OAuthExchanger = Depends(get_exchanger),
):
    """
    Handle the provider OAuth callback.
    Exchange the code for tokens and redirect back to the dashboard with the outcome.
    """
    adapter = get_adapter(provider)
    logger.info(f"{adapter.label} callback received. Code: {'present' if code else 'missing'}, Error: {error or 'none'}")

    if error:
        logger.error(f"{adapter.label} authorization denied: {error}")
        return _error_redirect(provider, error)
    if not code:
        logger.error(f"No authorization code received from {adapter.label}")
        return _error_redirect(provider, "no_code")

    redirect_uri = resolve_redirect_uri(adapter, settings, request)
    try:
        await exchanger.exchange_code(provider, code, redirect_uri)
    except HealthDashboardError as e:
        logger.error(f"{adapter.label} OAuth error: {e.message}")
        return _error_redirect(provider, e.message)

    return RedirectResponse(url=f"/?{provider}=connected")


def _error_redirect(provider: str, reason: str) -> RedirectResponse:
    return RedirectResponse(url=f"/?{provider}=error&reason={quote(reason, safe='')}")


@router.get("/api/{provider}/status")
def get_status(provider: str, token_store: TokenStore = Depends(get_token_store)):
    get_adapter(provider)
    return {"connected": token_store.is_connected(provider)}


@router.post("/api/{provider}/refresh")
async def refresh_token(provider: str, exchanger: OAuthExchanger = Depends(get_exchanger)):
    """Caller-initiated refresh-token grant; nothing refreshes automatically."""
    await exchanger.refresh(provider)
    return {"connected": True}
