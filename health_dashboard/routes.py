import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, validator
from slowapi import Limiter

from .data_client import ProviderDataClient
from .deps import get_data_client, get_insights
from .insights import InsightRequester

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthDataRequest(BaseModel):
    health_data: Optional[Dict[str, Any]] = Field(default=None, alias="healthData")


class ChatRequest(HealthDataRequest):
    message: str = Field(..., min_length=1, max_length=4000)

    @validator('message')
    def validate_message(cls, v):
        if not v.strip():
            raise ValueError('Message cannot be empty')
        return v.strip()


class ChatResponse(BaseModel):
    response: str


class SummaryResponse(BaseModel):
    summary: str


class TrendsResponse(BaseModel):
    analysis: str


# ============== AI ==============

def create_ai_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """AI routes, rate limited by the app's own limiter and AI_RATE_LIMIT."""
    ai_router = APIRouter()

    @ai_router.post("/ai/chat", response_model=ChatResponse)
    @limiter.limit(rate_limit)
    async def ai_chat(
        request: Request,
        body: ChatRequest,
        insights: InsightRequester = Depends(get_insights),
    ):
        answer = await insights.chat(body.message, body.health_data)
        return ChatResponse(response=answer)

    @ai_router.post("/ai/daily-summary", response_model=SummaryResponse)
    @limiter.limit(rate_limit)
    async def ai_daily_summary(
        request: Request,
        body: HealthDataRequest,
        insights: InsightRequester = Depends(get_insights),
    ):
        summary = await insights.daily_summary(body.health_data)
        return SummaryResponse(summary=summary)

    @ai_router.post("/ai/trends", response_model=TrendsResponse)
    @limiter.limit(rate_limit)
    async def ai_trends(
        request: Request,
        body: HealthDataRequest,
        insights: InsightRequester = Depends(get_insights),
    ):
        analysis = await insights.trends(body.health_data)
        return TrendsResponse(analysis=analysis)

    return ai_router


# ============== PROVIDER DATA ==============

@router.get("/{provider}/{resource}")
async def get_provider_resource(
    provider: str,
    resource: str,
    data_client: ProviderDataClient = Depends(get_data_client),
):
    """Proxy a read-only provider resource; the JSON is returned unmodified."""
    return await data_client.fetch(provider, resource)
