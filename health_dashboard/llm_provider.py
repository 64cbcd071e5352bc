"""
LLM Provider Abstraction
Supports multiple LLM providers: OpenRouter, DeepSeek, OpenAI, Gemini
Allows easy switching and cost optimization.
"""
import hashlib
import logging
from typing import Optional

import httpx
from google import genai
from openai import AsyncOpenAI, OpenAIError

from .config import Settings
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

API_KEY_SETTINGS = {
    "openrouter": "OPENROUTER_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


class LLMProvider:
    """
    Unified interface for multiple LLM providers.

    The credential is checked on every call rather than at construction so a
    missing key surfaces as a configuration error on the AI routes without
    taking the whole app down, and without any request leaving the process.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.provider = settings.LLM_PROVIDER.lower()
        self.model = settings.LLM_MODEL
        self.referer = settings.OPENROUTER_REFERER
        self._transport = transport

        key_setting = API_KEY_SETTINGS.get(self.provider)
        if key_setting is None:
            self.key_setting = None
            self.api_key = ""
            logger.error(f"Unknown LLM provider: {self.provider}")
            return

        self.key_setting = key_setting
        self.api_key = getattr(settings, key_setting, "").strip()
        if self.api_key:
            # Securely log confirmation that the key is loaded
            key_hash = hashlib.sha256(self.api_key.encode()).hexdigest()[:16]
            logger.info(f"Loaded {self.provider} key (sha256-hash: {key_hash})")
        else:
            logger.warning(f"{key_setting} not set; AI endpoints will be unavailable")

    def ensure_configured(self) -> None:
        if self.key_setting is None:
            raise ConfigurationError(f"Unknown LLM provider: {self.provider}")
        if not self.api_key:
            raise ConfigurationError(f"{self.key_setting} not set")

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        """
        Generate a completion and return the first generated text segment.

        Raises ConfigurationError without any network call when the
        credential is missing, UpstreamError when the completion fails.
        """
        self.ensure_configured()
        logger.info(f"LLM Request: Provider={self.provider}, Model={self.model}, MaxTokens={max_tokens}")

        if self.provider == "openrouter":
            return await self._generate_chat_completions(
                "https://openrouter.ai/api/v1/chat/completions",
                self.model, prompt, system_instruction, temperature, max_tokens,
                extra_headers={"HTTP-Referer": self.referer, "X-Title": "Health Dashboard"},
            )
        elif self.provider == "deepseek":
            return await self._generate_chat_completions(
                "https://api.deepseek.com/v1/chat/completions",
                self.model.replace("deepseek/", ""),  # Remove prefix if present
                prompt, system_instruction, temperature, max_tokens,
            )
        elif self.provider == "openai":
            return await self._generate_openai(prompt, system_instruction, temperature, max_tokens)
        return await self._generate_gemini(prompt, system_instruction, temperature, max_tokens)

    async def _generate_chat_completions(
        self,
        url: str,
        model: str,
        prompt: str,
        system_instruction: str,
        temperature: float,
        max_tokens: int,
        extra_headers: Optional[dict] = None,
    ) -> str:
        """OpenAI-compatible chat completions endpoint via httpx."""
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            **(extra_headers or {}),
        }

        try:
            async with httpx.AsyncClient(timeout=60.0, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.provider} HTTP Error: {e.response.status_code} - {e.response.text}")
            raise UpstreamError(f"{self.provider} HTTP Error {e.response.status_code}: {e.response.text}")
        except httpx.RequestError as e:
            logger.error(f"{self.provider} connection error: {e}")
            raise UpstreamError(f"{self.provider} connection error: {e}")
        except ValueError as e:
            raise UpstreamError(f"{self.provider} returned invalid JSON: {e}")

        if "error" in data:
            logger.error(f"{self.provider} API returned error in JSON: {data}")
            raise UpstreamError(f"{self.provider} API Error: {data['error']}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamError(f"{self.provider} returned no completion")
        if content is None:
            raise UpstreamError(f"{self.provider} returned an empty completion")
        return content

    async def _generate_openai(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate using the OpenAI SDK."""
        http_client = httpx.AsyncClient(timeout=60.0, transport=self._transport)
        client = AsyncOpenAI(api_key=self.api_key, http_client=http_client)
        try:
            response = await client.chat.completions.create(
                model=self.model.split("/")[-1],
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI Error: {e}")
            raise UpstreamError(f"OpenAI Error: {e}")
        finally:
            await client.close()

        if not response.choices or response.choices[0].message.content is None:
            raise UpstreamError("OpenAI returned an empty completion")
        return response.choices[0].message.content

    async def _generate_gemini(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate using Gemini API."""
        # Clean model name if it has a prefix (OpenRouter style)
        clean_model = self.model.split("/")[-1] if "/" in self.model else self.model
        if not clean_model.startswith("gemini-"):
            clean_model = "gemini-2.0-flash"

        from google.genai import types

        client = genai.Client(api_key=self.api_key)
        try:
            response = await client.aio.models.generate_content(
                model=clean_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except Exception as e:
            logger.error(f"Gemini Error: {e}")
            raise UpstreamError(f"Gemini Error: {e}")

        if not response.text:
            raise UpstreamError("Gemini returned an empty completion")
        return response.text
