"""LLM-backed tag suggestions for notes, recordings and tasks.

Suggestions are free-form labels, distinct from the fixed memory category
taxonomy.  The model is asked for 3-5 short lowercase tags, each with a
colour from a fixed palette; anything that does not meet those rules is
discarded, and a reply with fewer than three usable tags yields ``[]``.
"""

from __future__ import annotations

import structlog

from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.interfaces.tag_suggester import ITagSuggester
from lifeos_memory.models.classification import TAG_COLOR_PALETTE, TagSuggestion
from lifeos_memory.models.memory import ResourceType
from lifeos_memory.utils.llm_json import extract_json_object

logger = structlog.get_logger(logger_name=__name__)

_MAX_INPUT_CHARS = 2000
_MIN_SUGGESTIONS = 3
_MAX_SUGGESTIONS = 5

_PALETTE_TEXT = ", ".join(f"{hex_code} ({name})" for hex_code, name in TAG_COLOR_PALETTE.items())

_SYSTEM_PROMPT_TEMPLATE = """\
You are a tag suggestion assistant. Analyze the content and suggest 3-5 relevant tags.

Rules:
1. Suggest tags that are concise (1-2 words)
2. Use lowercase for tag names
3. Avoid duplicates with existing tags: {existing}
4. Suggest tags that would help organize and find this content later
5. Consider the context: {resource_type}
6. Assign colors from this palette: {palette}

Respond in JSON format:
{{
  "suggestions": [
    {{
      "name": "tag-name",
      "color": "#3b82f6",
      "confidence": 0.9,
      "reasoning": "Brief explanation"
    }}
  ]
}}"""


class LLMTagSuggester(ITagSuggester):
    """Tag suggester backed by an LLM provider.

    Parameters
    ----------
    llm_provider:
        Provider used for the suggestion completion.
    temperature:
        Sampling temperature; higher than the categorizer's for variety.
    """

    def __init__(self, llm_provider: ILLMProvider, temperature: float = 0.7) -> None:
        self._llm = llm_provider
        self._temperature = temperature

    async def suggest(
        self,
        content: str,
        resource_type: ResourceType,
        existing_tag_names: list[str] | None = None,
    ) -> list[TagSuggestion]:
        if not content or not content.strip():
            return []

        existing = [name.strip().lower() for name in (existing_tag_names or []) if name.strip()]
        system_prompt = _SYSTEM_PROMPT_TEMPLATE.format(
            existing=", ".join(existing) or "none",
            resource_type=resource_type.value,
            palette=_PALETTE_TEXT,
        )
        user_prompt = f"Suggest tags for this {resource_type.value}:\n\n{content[:_MAX_INPUT_CHARS]}"

        try:
            response = await self._llm.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=600,
                json_mode=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "tag_suggestion_failed",
                provider=self._llm.get_provider_name(),
                error=str(exc),
            )
            return []

        suggestions = self._parse_suggestions(response, set(existing))
        if len(suggestions) < _MIN_SUGGESTIONS:
            logger.info("tag_suggestions_insufficient", valid=len(suggestions))
            return []
        logger.info("tags_suggested", count=len(suggestions), resource_type=resource_type.value)
        return suggestions[:_MAX_SUGGESTIONS]

    @staticmethod
    def _parse_suggestions(response: str, existing: set[str]) -> list[TagSuggestion]:
        data = extract_json_object(response)
        if data is None:
            return []
        raw_items = data.get("suggestions")
        if not isinstance(raw_items, list):
            return []

        seen = set(existing)
        valid: list[TagSuggestion] = []
        for item in raw_items:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            color = item.get("color")
            confidence = item.get("confidence")
            reasoning = item.get("reasoning")
            if not isinstance(name, str):
                continue
            name = " ".join(name.strip().lower().split())
            if not name or len(name.split(" ")) > 2 or name in seen:
                continue
            if not isinstance(color, str) or color.strip().lower() not in TAG_COLOR_PALETTE:
                continue
            if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
                continue
            if not 0.0 <= float(confidence) <= 1.0:
                continue
            seen.add(name)
            valid.append(
                TagSuggestion(
                    name=name,
                    color=color.strip().lower(),
                    confidence=float(confidence),
                    reasoning=reasoning.strip() if isinstance(reasoning, str) else "",
                )
            )
        return valid
