"""Unit tests for LLMTagSuggester validation rules."""

from __future__ import annotations

import json

import pytest

from lifeos_memory.models.memory import ResourceType
from lifeos_memory.services.tag_suggester import LLMTagSuggester
from lifeos_memory.utils.errors import LLMError


def _suggestion(name: str, color: str = "#3b82f6", confidence=0.8, reasoning: str = "fits") -> dict:
    return {"name": name, "color": color, "confidence": confidence, "reasoning": reasoning}


def _reply(*items: dict) -> str:
    return json.dumps({"suggestions": list(items)})


class TestLLMTagSuggester:
    @pytest.mark.asyncio
    async def test_valid_suggestions_returned(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(
            _suggestion("budget"),
            _suggestion("Rent Payment", color="#EF4444"),
            _suggestion("finance", color="#10b981", confidence=1),
        )
        result = await LLMTagSuggester(mock_llm_provider).suggest("Paid rent", ResourceType.NOTE)

        assert [s.name for s in result] == ["budget", "rent payment", "finance"]
        assert result[1].color == "#ef4444"
        assert result[2].confidence == 1.0

    @pytest.mark.asyncio
    async def test_at_most_five_returned(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(
            *[_suggestion(f"tag{i}") for i in range(8)]
        )
        result = await LLMTagSuggester(mock_llm_provider).suggest("content", ResourceType.TASK)
        assert len(result) == 5

    @pytest.mark.asyncio
    async def test_fewer_than_three_valid_returns_empty(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(
            _suggestion("budget"),
            _suggestion("rent"),
            _suggestion("bad colour", color="#000000"),
        )
        assert await LLMTagSuggester(mock_llm_provider).suggest("c", ResourceType.NOTE) == []

    @pytest.mark.asyncio
    async def test_invalid_entries_dropped(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(
            _suggestion("way too many words"),
            _suggestion("confident", confidence=1.5),
            _suggestion("boolish", confidence=True),
            _suggestion("stringy", confidence="0.9"),
            "not-a-dict",
            _suggestion("alpha"),
            _suggestion("beta"),
            _suggestion("gamma"),
        )
        result = await LLMTagSuggester(mock_llm_provider).suggest("c", ResourceType.RECORDING)
        assert [s.name for s in result] == ["alpha", "beta", "gamma"]

    @pytest.mark.asyncio
    async def test_existing_and_duplicate_names_excluded(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply(
            _suggestion("work"),
            _suggestion("alpha"),
            _suggestion("Alpha"),
            _suggestion("beta"),
            _suggestion("gamma"),
        )
        result = await LLMTagSuggester(mock_llm_provider).suggest(
            "c", ResourceType.NOTE, existing_tag_names=["Work"]
        )
        assert [s.name for s in result] == ["alpha", "beta", "gamma"]
        system_prompt = mock_llm_provider.complete.call_args.kwargs["system_prompt"]
        assert "work" in system_prompt

    @pytest.mark.asyncio
    async def test_llm_failure_returns_empty(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError(message="down", provider_name="mock")
        assert await LLMTagSuggester(mock_llm_provider).suggest("c", ResourceType.NOTE) == []

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_empty(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "budget, rent, finance"
        assert await LLMTagSuggester(mock_llm_provider).suggest("c", ResourceType.NOTE) == []

    @pytest.mark.asyncio
    async def test_blank_content_skips_llm(self, mock_llm_provider) -> None:
        assert await LLMTagSuggester(mock_llm_provider).suggest("  ", ResourceType.NOTE) == []
        mock_llm_provider.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_content_truncated_in_prompt(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = _reply()
        await LLMTagSuggester(mock_llm_provider).suggest("z" * 5000, ResourceType.NOTE)
        user_prompt = mock_llm_provider.complete.call_args.kwargs["user_prompt"]
        assert user_prompt.count("z") == 2000
