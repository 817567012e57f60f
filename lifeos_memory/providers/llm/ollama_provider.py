"""Offline categorization through a local Ollama server.

Ollama serves an OpenAI-compatible ``/v1`` API, so this is the OpenAI
adapter with a different client and model.  Setup: ``ollama pull
llama3.1`` and set ``OLLAMA_BASE_URL``.
"""

from __future__ import annotations

import httpx
import openai

from lifeos_memory.config.settings import Settings
from lifeos_memory.providers.llm.openai_provider import OpenAILLMProvider

OLLAMA_TEXT_MODEL = "llama3.1"


class OllamaLLMProvider(OpenAILLMProvider):
    """Chat completions against ``llama3.1`` on Ollama."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(settings)
        self._text_model = OLLAMA_TEXT_MODEL
        self._provider_label = "ollama"
        self._supports_json_mode = True

    def _make_client(self, settings: Settings) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # ignored by Ollama, required by the SDK
            timeout=openai.Timeout(settings.llm_timeout_seconds, connect=5.0),
        )

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the server answers on ``/api/tags``."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
        except httpx.HTTPError:
            return False
        return response.status_code == 200
