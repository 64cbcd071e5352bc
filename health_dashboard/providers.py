"""
Provider adapters for Strava and Oura.

Each adapter describes everything that differs between the two providers:
OAuth endpoints, how the token endpoint wants its body encoded, the fixed
scopes, and the read-only resources we proxy. The OAuth and data-fetch code
is generic and driven entirely by these descriptions.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import UnknownResourceError

STRAVA = "strava"
OURA = "oura"

# Token endpoint body encodings
JSON_BODY = "json"
FORM_BODY = "form"


@dataclass(frozen=True)
class Resource:
    path: str
    params: Dict[str, str] = field(default_factory=dict)
    window_days: Optional[int] = None  # rolling start_date/end_date window


@dataclass(frozen=True)
class ProviderAdapter:
    name: str
    label: str
    auth_endpoint: str
    token_endpoint: str
    api_base: str
    body_encoding: str
    scopes: Tuple[str, ...]
    scope_separator: str
    resources: Dict[str, Resource]
    extra_auth_params: Dict[str, str] = field(default_factory=dict)
    send_redirect_uri: bool = False  # include redirect_uri in the code exchange

    @property
    def callback_path(self) -> str:
        return f"/callback/{self.name}"

    @property
    def scope(self) -> str:
        return self.scope_separator.join(self.scopes)

    def resource(self, name: str) -> Resource:
        try:
            return self.resources[name]
        except KeyError:
            raise UnknownResourceError(f"Unknown {self.label} resource: {name}")


STRAVA_ADAPTER = ProviderAdapter(
    name=STRAVA,
    label="Strava",
    auth_endpoint="https://www.strava.com/oauth/authorize",
    token_endpoint="https://www.strava.com/oauth/token",
    api_base="https://www.strava.com/api/v3",
    body_encoding=JSON_BODY,
    scopes=("read", "activity:read_all", "profile:read_all"),
    scope_separator=",",
    resources={
        "athlete": Resource("/athlete"),
        "activities": Resource("/athlete/activities", params={"per_page": "30"}),
    },
    extra_auth_params={"approval_prompt": "force"},
)

OURA_ADAPTER = ProviderAdapter(
    name=OURA,
    label="Oura",
    auth_endpoint="https://cloud.ouraring.com/oauth/authorize",
    token_endpoint="https://api.ouraring.com/oauth/token",
    api_base="https://api.ouraring.com/v2/usercollection",
    body_encoding=FORM_BODY,
    # Oura documents "+" as the scope separator
    scopes=("daily", "heartrate", "personal", "session", "workout"),
    scope_separator="+",
    resources={
        "readiness": Resource("/daily_readiness", window_days=30),
        "sleep": Resource("/daily_sleep", window_days=30),
        "activity": Resource("/daily_activity", window_days=30),
        "heartrate": Resource("/heartrate", window_days=7),
        "sleep-details": Resource("/sleep", window_days=30),
    },
    send_redirect_uri=True,
)

PROVIDERS: Dict[str, ProviderAdapter] = {
    STRAVA: STRAVA_ADAPTER,
    OURA: OURA_ADAPTER,
}


def get_adapter(provider: str) -> ProviderAdapter:
    adapter = PROVIDERS.get(provider)
    if adapter is None:
        raise UnknownResourceError(f"Unknown provider: {provider}")
    return adapter
