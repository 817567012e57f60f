"""OpenAI chat-completions adapter for categorization and tag suggestion.

Points at ``OPENAI_BASE_URL`` when set, so any OpenAI-compatible gateway
works.  :class:`~lifeos_memory.providers.llm.ollama_provider.OllamaLLMProvider`
reuses this class against a local Ollama server.
"""

from __future__ import annotations

import openai
import structlog

from lifeos_memory.config.settings import Settings
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TEXT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(ILLMProvider):
    """Chat completions against OpenAI (``gpt-4o-mini`` unless overridden)."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._text_model = settings.openai_text_model or DEFAULT_TEXT_MODEL
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"
        # response_format=json_object is only guaranteed on OpenAI itself.
        self._supports_json_mode = not settings.openai_base_url
        self._client = self._make_client(settings)

    def _make_client(self, settings: Settings) -> openai.AsyncOpenAI:
        kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.llm_timeout_seconds, connect=5.0),
        }
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url
        return openai.AsyncOpenAI(**kwargs)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        request: dict = {
            "model": self._text_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode and self._supports_json_mode:
            request["response_format"] = {"type": "json_object"}

        name = self.get_provider_name()
        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{name} timed out after {self._settings.llm_timeout_seconds}s",
                provider_name=name,
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(message=f"{name} rate limited: {exc}", provider_name=name) from exc
        except openai.APIError as exc:
            raise LLMError(message=f"{name} completion failed: {exc}", provider_name=name) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(message=f"{name} returned an empty completion", provider_name=name)

        usage = getattr(response, "usage", None)
        logger.info(
            "llm_completion",
            provider=name,
            model=self._text_model,
            json_mode=json_mode,
            tokens=usage.total_tokens if usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (not verified)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
        except openai.APIError:
            return False
        return True

    def get_provider_name(self) -> str:
        return self._provider_label
