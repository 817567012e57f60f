"""LLM provider adapters (Anthropic, OpenAI-compatible, Ollama)."""

from lifeos_memory.providers.llm.anthropic_provider import AnthropicLLMProvider
from lifeos_memory.providers.llm.ollama_provider import OllamaLLMProvider
from lifeos_memory.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OllamaLLMProvider", "OpenAILLMProvider"]
