"""
LLM client -- any OpenAI-compatible chat completions endpoint.

Used by services/pitch_analyzer.py. Every failure surfaces as
``domain.errors.UpstreamError`` so callers never see SDK exception types.
"""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from config_env import (
    LLM_API_KEY,
    LLM_BASE_URL,
    LLM_MAX_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
)
from domain.errors import UpstreamError

logger = logging.getLogger(__name__)


class LLMClient:
    """Thin async wrapper; the SDK client is created on first use."""

    def __init__(
        self,
        api_key: Optional[str] = LLM_API_KEY,
        base_url: str = LLM_BASE_URL,
        model: str = LLM_MODEL,
        timeout: float = LLM_TIMEOUT_SECONDS,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise UpstreamError("AI service is not configured (LLM_API_KEY is empty)")
        if self._client is None:
            logger.info("Initialising LLM client (%s via %s)", self.model, self.base_url)
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Send one prompt and return the text of the first choice."""
        client = self._get_client()
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APITimeoutError as e:
            logger.error("LLM request timed out after %ss", self.timeout)
            raise UpstreamError("AI service timed out") from e
        except openai.APIError as e:
            logger.error("LLM request failed: %s", e)
            raise UpstreamError(f"AI service error: {e}") from e

        if not response.choices:
            logger.error("Empty response from LLM (%s)", self.model)
            raise UpstreamError("AI service returned no choices")

        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise UpstreamError("AI service returned an empty answer")

        tokens_used = response.usage.total_tokens if response.usage else 0
        logger.info("LLM answer received (%s chars, %s tokens)", len(text), tokens_used)
        return text

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
