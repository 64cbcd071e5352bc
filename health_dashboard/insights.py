import logging
from typing import Optional

from .health_context import format_health_data
from .llm_provider import LLMProvider

logger = logging.getLogger(__name__)

NO_DATA = "No health data is currently available."

CHAT_SYSTEM_PROMPT = """You are a knowledgeable, encouraging health and fitness assistant. \
You help the user understand their sleep, recovery, activity and training data from their \
Oura ring and Strava account.

Guidelines:
- Base your answers on the data below. If something is missing ("N/A" or absent), say so instead of guessing.
- Be concise and specific; quote the actual numbers and dates.
- You are not a doctor. For anything that sounds like a medical concern, suggest talking to a professional.

{context}"""

SUMMARY_SYSTEM_PROMPT = "You are a health coach writing a short daily check-in from wearable and training data."

SUMMARY_PROMPT = """Based on the health data below, write a brief daily summary for today.

Cover in 3-4 sentences:
1. How well the user slept and how recovered they are.
2. Their recent activity and training load.
3. One concrete recommendation for today.

Keep it friendly and under 100 words.

{context}"""

TRENDS_SYSTEM_PROMPT = "You are a health data analyst who spots patterns in wearable and training data."

TRENDS_PROMPT = """Analyze the health data below and identify trends over the period it covers.

Structure the answer with these sections:
## Sleep
Trends in sleep scores, HRV, resting heart rate and sleep stages.
## Recovery
How readiness has moved and which contributors are driving it.
## Activity & Training
Step counts, active calories and workout volume/intensity.
## Connections
Relationships between training load, sleep and recovery.
## Recommendations
Two or three specific, actionable suggestions.

Reference concrete dates and numbers. Where data is missing, note it rather than guessing.

{context}"""


class InsightRequester:
    """Chat, daily summary and trend requests; each call is stateless."""

    CHAT_MAX_TOKENS = 1024
    SUMMARY_MAX_TOKENS = 400
    TRENDS_MAX_TOKENS = 1500

    def __init__(self, llm: LLMProvider):
        self.llm = llm

    def _context(self, health_data: Optional[dict]) -> str:
        return format_health_data(health_data) or NO_DATA

    async def chat(self, message: str, health_data: Optional[dict]) -> str:
        self.llm.ensure_configured()
        return await self.llm.generate(
            prompt=message,
            system_instruction=CHAT_SYSTEM_PROMPT.format(context=self._context(health_data)),
            temperature=0.7,
            max_tokens=self.CHAT_MAX_TOKENS,
        )

    async def daily_summary(self, health_data: Optional[dict]) -> str:
        self.llm.ensure_configured()
        return await self.llm.generate(
            prompt=SUMMARY_PROMPT.format(context=self._context(health_data)),
            system_instruction=SUMMARY_SYSTEM_PROMPT,
            max_tokens=self.SUMMARY_MAX_TOKENS,
        )

    async def trends(self, health_data: Optional[dict]) -> str:
        self.llm.ensure_configured()
        return await self.llm.generate(
            prompt=TRENDS_PROMPT.format(context=self._context(health_data)),
            system_instruction=TRENDS_SYSTEM_PROMPT,
            max_tokens=self.TRENDS_MAX_TOKENS,
        )
