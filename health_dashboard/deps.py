from fastapi import Request

from .config import Settings
from .data_client import ProviderDataClient
from .insights import InsightRequester
from .oauth import OAuthExchanger
from .tokens import TokenStore

# Services are created once per app in main.create_app() and stored on app.state


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_exchanger(request: Request) -> OAuthExchanger:
    return request.app.state.exchanger


def get_data_client(request: Request) -> ProviderDataClient:
    return request.app.state.data_client


def get_insights(request: Request) -> InsightRequester:
    return request.app.state.insights
