"""Unit tests for LLMCategorizer and its deterministic fallback."""

from __future__ import annotations

import json

import pytest

from lifeos_memory.models.memory import MemoryCategory, SourceType
from lifeos_memory.services.ingestion.categorizer import LLMCategorizer, fallback_classification
from lifeos_memory.utils.errors import LLMError


def _reply(**fields) -> str:
    payload = {
        "summary": "Rent and insurance payments.",
        "entities_or_insights": ["rent", "car insurance"],
        "category": "finance",
    }
    payload.update(fields)
    return json.dumps(payload)


class TestFallbackClassification:
    def test_fallback_uses_general_and_prefix(self) -> None:
        content = "x" * 800
        result = fallback_classification(content)
        assert result.category is MemoryCategory.GENERAL
        assert result.summary == "x" * 500
        assert result.entities_or_insights == []
        assert result.is_fallback is True

    def test_fallback_prefix_length_configurable(self) -> None:
        assert fallback_classification("abcdefghij", summary_chars=4).summary == "abcd"


class TestLLMCategorizer:
    @pytest.mark.asyncio
    async def test_valid_reply_parsed(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply()
        categorizer = LLMCategorizer(mock_llm_provider)

        result = await categorizer.categorize("Paid rent $1200.", SourceType.NOTE)

        assert result.category is MemoryCategory.FINANCE
        assert result.summary == "Rent and insurance payments."
        assert result.entities_or_insights == ["rent", "car insurance"]
        assert result.is_fallback is False

    @pytest.mark.asyncio
    async def test_prompt_depends_on_source_type(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply()
        categorizer = LLMCategorizer(mock_llm_provider)

        await categorizer.categorize("hello", SourceType.NOTE)
        await categorizer.categorize("hello", SourceType.RECORDING)
        await categorizer.categorize("hello", SourceType.CHAT)

        prompts = [c.kwargs["system_prompt"] for c in mock_llm_provider.complete.call_args_list]
        assert "note" in prompts[0]
        assert "transcript" in prompts[1]
        assert "conversation" in prompts[2]
        assert all(c.kwargs["json_mode"] is True for c in mock_llm_provider.complete.call_args_list)

    @pytest.mark.asyncio
    async def test_input_truncated(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply()
        categorizer = LLMCategorizer(mock_llm_provider, max_input_chars=10)

        await categorizer.categorize("abcdefghijklmnopqrstuvwxyz")

        assert mock_llm_provider.complete.call_args.kwargs["user_prompt"] == "abcdefghij"

    @pytest.mark.asyncio
    async def test_fenced_json_reply(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = f"Here you go:\n```json\n{_reply(category='work')}\n```"
        result = await LLMCategorizer(mock_llm_provider).categorize("Sprint planning notes")
        assert result.category is MemoryCategory.WORK

    @pytest.mark.asyncio
    async def test_malformed_reply_falls_back(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "I think this is about money."
        result = await LLMCategorizer(mock_llm_provider).categorize("Paid rent")
        assert result.is_fallback is True
        assert result.category is MemoryCategory.GENERAL
        assert result.summary == "Paid rent"

    @pytest.mark.asyncio
    async def test_category_outside_taxonomy_falls_back(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(category="travel")
        result = await LLMCategorizer(mock_llm_provider).categorize("Flight to Lisbon")
        assert result.is_fallback is True
        assert result.category is MemoryCategory.GENERAL

    @pytest.mark.asyncio
    async def test_category_is_case_insensitive(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(category="Health")
        result = await LLMCategorizer(mock_llm_provider).categorize("Ran 5k")
        assert result.category is MemoryCategory.HEALTH

    @pytest.mark.asyncio
    async def test_llm_error_falls_back(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError(message="boom", provider_name="mock")
        result = await LLMCategorizer(mock_llm_provider).categorize("Paid rent")
        assert result.is_fallback is True
        assert result.summary == "Paid rent"

    @pytest.mark.asyncio
    async def test_blank_summary_replaced_with_prefix(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(summary="   ")
        result = await LLMCategorizer(mock_llm_provider).categorize("Paid rent")
        assert result.summary == "Paid rent"
        assert result.is_fallback is False

    @pytest.mark.asyncio
    async def test_legacy_item_keys_accepted(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = json.dumps(
            {"summary": "s", "insights": ["follow up"], "category": "work"}
        )
        result = await LLMCategorizer(mock_llm_provider).categorize("Meeting transcript", SourceType.RECORDING)
        assert result.entities_or_insights == ["follow up"]

    @pytest.mark.asyncio
    async def test_empty_content_never_calls_llm(self, mock_llm_provider) -> None:
        result = await LLMCategorizer(mock_llm_provider).categorize("   ")
        assert result.is_fallback is True
        mock_llm_provider.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_configured_fallback_summary_length(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError(message="down")
        categorizer = LLMCategorizer(mock_llm_provider, fallback_summary_chars=9)

        result = await categorizer.categorize("Paid rent $1200 on the 1st.")

        assert result.summary == "Paid rent"
        assert result.category is MemoryCategory.GENERAL
