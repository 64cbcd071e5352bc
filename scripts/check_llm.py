"""
Manual LLM connectivity check.

Sends a daily-summary request with a tiny sample of health data using the
settings from .env, so a deployment's LLM_PROVIDER / key can be verified
without going through the HTTP API.
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to sys.path so we can run this without installing
sys.path.append(str(Path(__file__).parent.parent))

from health_dashboard.config import settings
from health_dashboard.errors import HealthDashboardError
from health_dashboard.insights import InsightRequester
from health_dashboard.llm_provider import LLMProvider

SAMPLE_HEALTH_DATA = {
    "oura": {
        "sleep": {"data": [{"day": "2024-01-01", "score": 82}]},
        "readiness": {"data": [{"day": "2024-01-01", "score": 78}]},
    },
    "strava": {
        "activities": [{
            "name": "Morning Run", "type": "Run", "distance": 5000,
            "moving_time": 1800, "start_date_local": "2024-01-01T08:00:00Z",
        }],
    },
}


async def check_llm():
    provider = LLMProvider(settings)
    print(f"Provider: {provider.provider}")
    print(f"Model: {provider.model}")

    try:
        summary = await InsightRequester(provider).daily_summary(SAMPLE_HEALTH_DATA)
    except HealthDashboardError as e:
        print(f"\nLLM check failed: {e.message}")
        return 1

    print("\n--- LLM RESPONSE ---")
    print(summary)
    print("--------------------")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(check_llm()))
