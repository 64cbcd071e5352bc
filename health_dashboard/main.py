import logging
import os
import sys
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .auth import router as auth_router
from .config import Settings, settings as default_settings
from .data_client import Clock, ProviderDataClient, utc_now
from .errors import HealthDashboardError
from .insights import InsightRequester
from .limiter import create_limiter
from .llm_provider import LLMProvider
from .oauth import OAuthExchanger
from .routes import create_ai_router, router as api_router
from .tokens import TokenStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Build the application with its own token store and services.
    `transport` is handed to every outbound httpx client (providers and LLM).
    """
    settings = settings or default_settings

    app = FastAPI(title="Health Dashboard")
    app.state.settings = settings
    app.state.token_store = TokenStore.from_settings(settings)
    app.state.exchanger = OAuthExchanger(settings, app.state.token_store, transport=transport)
    app.state.data_client = ProviderDataClient(app.state.token_store, clock=clock, transport=transport)
    app.state.insights = InsightRequester(LLMProvider(settings, transport=transport))

    limiter = create_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(HealthDashboardError)
    async def dashboard_error_handler(request: Request, exc: HealthDashboardError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global Exception on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error. Check logs for traceback."},
        )

    # Include routers (auth first so /api/{provider}/status beats the resource route)
    app.include_router(auth_router, tags=["auth"])
    app.include_router(create_ai_router(limiter, settings.AI_RATE_LIMIT), prefix="/api", tags=["ai"])
    app.include_router(api_router, prefix="/api", tags=["api"])

    if settings.STATIC_DIR and os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
    else:
        @app.get("/")
        def read_root():
            return {"message": "Health Dashboard API is running"}

    return app


def run() -> None:
    configure_logging(default_settings.LOG_LEVEL)
    app = create_app()
    logger.info(f"Health Dashboard running at http://localhost:{default_settings.PORT}")
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT, proxy_headers=True)


if __name__ == "__main__":
    run()
