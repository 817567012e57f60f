"""Claude adapter for categorization and tag suggestion.

The Messages API takes the system prompt as its own parameter and returns a
list of content blocks; only ``text`` blocks are kept.  There is no JSON
mode, so ``json_mode`` is accepted and ignored: the categorizer and tag
suggester already pull the first JSON object out of free text.
"""

from __future__ import annotations

import anthropic
import structlog

from lifeos_memory.config.settings import Settings
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(ILLMProvider):
    """First choice when ``ANTHROPIC_API_KEY`` is set."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._model = settings.anthropic_model or DEFAULT_ANTHROPIC_MODEL
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            timeout=settings.llm_timeout_seconds,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        name = self.get_provider_name()
        try:
            response = await self._client.messages.create(
                model=self._model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError(message=f"{name} rate limited: {exc}", provider_name=name) from exc
        except anthropic.APIError as exc:
            raise LLMError(message=f"{name} completion failed: {exc}", provider_name=name) from exc

        text = "\n".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise LLMError(message=f"{name} returned no text content", provider_name=name)

        logger.info(
            "llm_completion",
            provider=name,
            model=self._model,
            json_mode=json_mode,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return text

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Send a one-token request to confirm the key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
        except anthropic.APIError:
            return False
        return True

    def get_provider_name(self) -> str:
        return "anthropic"
