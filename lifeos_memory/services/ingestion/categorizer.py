"""LLM-backed content categorizer.

Asks the configured :class:`ILLMProvider` for a summary, key entities (for
notes) or key insights and action items (for recordings and chat), and a
category from the fixed taxonomy.  Any failure along the way (LLM error,
unparseable reply, category outside the taxonomy) degrades to the
deterministic fallback instead of raising, so ingestion always proceeds.
"""

from __future__ import annotations

import structlog

from lifeos_memory.interfaces.categorizer import ICategorizer
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.models.classification import Classification
from lifeos_memory.models.memory import MemoryCategory, SourceType, coerce_category
from lifeos_memory.utils.llm_json import coerce_string_list, extract_json_object

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_FALLBACK_SUMMARY_CHARS = 500

_RESPONSE_FORMAT = """\
Respond in JSON format:
{
  "summary": "summary text",
  "entities_or_insights": ["item1", "item2"],
  "category": "finance|work|health|general"
}"""

_NOTE_PROMPT = f"""\
Analyze the following note and provide:
1. A concise summary (2-3 sentences)
2. Key entities (people, topics, dates, locations)
3. Category classification (finance, work, health, or general)

{_RESPONSE_FORMAT}"""

_RECORDING_PROMPT = f"""\
Analyze the following transcript and provide:
1. A concise summary (2-3 sentences)
2. Key insights and action items
3. Category classification (finance, work, health, or general)

{_RESPONSE_FORMAT}"""

_CHAT_PROMPT = f"""\
Analyze the following conversation and provide:
1. A concise summary (2-3 sentences)
2. Key insights and action items
3. Category classification (finance, work, health, or general)

{_RESPONSE_FORMAT}"""

_PROMPTS: dict[SourceType, str] = {
    SourceType.NOTE: _NOTE_PROMPT,
    SourceType.RECORDING: _RECORDING_PROMPT,
    SourceType.CHAT: _CHAT_PROMPT,
}


def fallback_classification(
    content: str, summary_chars: int = DEFAULT_FALLBACK_SUMMARY_CHARS
) -> Classification:
    """Return the deterministic fallback: ``general`` + the first *summary_chars* characters."""
    return Classification(
        summary=content[:summary_chars],
        entities_or_insights=[],
        category=MemoryCategory.GENERAL,
        is_fallback=True,
    )


class LLMCategorizer(ICategorizer):
    """Categorizer backed by an LLM provider.

    Parameters
    ----------
    llm_provider:
        Provider used for the classification completion.
    max_input_chars:
        Content is truncated to this many characters before sending.
    temperature:
        Sampling temperature; kept low so categories are stable.
    fallback_summary_chars:
        Length of the content prefix used as the summary when the LLM
        gives no usable answer.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        max_input_chars: int = 2000,
        temperature: float = 0.3,
        fallback_summary_chars: int = DEFAULT_FALLBACK_SUMMARY_CHARS,
    ) -> None:
        self._llm = llm_provider
        self._max_input_chars = max_input_chars
        self._temperature = temperature
        self._fallback_summary_chars = fallback_summary_chars

    async def categorize(
        self,
        content: str,
        source_type: SourceType = SourceType.NOTE,
    ) -> Classification:
        if not content or not content.strip():
            logger.warning("categorize_empty_content", source_type=str(source_type))
            return self._fallback(content or "")

        system_prompt = _PROMPTS.get(source_type, _NOTE_PROMPT)
        try:
            response = await self._llm.complete(
                system_prompt=system_prompt,
                user_prompt=content[: self._max_input_chars],
                temperature=self._temperature,
                max_tokens=800,
                json_mode=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "categorize_llm_failed",
                provider=self._llm.get_provider_name(),
                error=str(exc),
            )
            return self._fallback(content)

        return self._parse_response(response, content)

    def _fallback(self, content: str) -> Classification:
        return fallback_classification(content, self._fallback_summary_chars)

    def _parse_response(self, response: str, content: str) -> Classification:
        data = extract_json_object(response)
        if data is None:
            logger.warning("categorize_unparseable_response", response_preview=response[:200])
            return self._fallback(content)

        category = coerce_category(data.get("category"))
        if category is None:
            logger.warning("categorize_unknown_category", category=repr(data.get("category")))
            return self._fallback(content)

        items_raw = data.get("entities_or_insights")
        if items_raw is None:
            items_raw = data.get("entities", data.get("insights"))
        items = coerce_string_list(items_raw)

        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = content[: self._fallback_summary_chars]
        else:
            summary = summary.strip()

        logger.info(
            "content_categorized",
            category=category.value,
            items=len(items),
            provider=self._llm.get_provider_name(),
        )
        return Classification(
            summary=summary,
            entities_or_insights=items,
            category=category,
        )
