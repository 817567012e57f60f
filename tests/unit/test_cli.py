"""Unit tests for the memory CLI (argument parsing and handlers)."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from lifeos_memory.cli.memory import (
    _build_parser,
    _handle_ingest,
    _handle_search,
    _handle_stats,
    _handle_suggest_tags,
    _read_document,
)
from lifeos_memory.models.classification import TagSuggestion
from lifeos_memory.models.document import ContainerNode
from lifeos_memory.models.ingestion import IngestionResult
from lifeos_memory.models.memory import MemoryCategory, MemoryStats, SourceType
from lifeos_memory.utils.errors import ValidationError


def _components() -> dict:
    ingestion = MagicMock()
    ingestion.ingest = AsyncMock(
        return_value=IngestionResult(
            owner_id="u1",
            source_type=SourceType.NOTE,
            category=MemoryCategory.FINANCE,
            summary="Rent paid.",
            chunks_attempted=2,
            chunks_stored=2,
            ingestion_time=0.12,
        )
    )
    retrieval = MagicMock()
    retrieval.retrieve = AsyncMock(return_value=[])
    retrieval.retrieve_across_categories = AsyncMock(return_value=[])
    store = MagicMock()
    store.get_stats = AsyncMock(
        return_value=MemoryStats(
            owner_id="u1",
            total_chunks=3,
            chunks_by_category={"finance": 3},
            chunks_by_source_type={"note": 3},
        )
    )
    tags = MagicMock()
    tags.suggest = AsyncMock(
        return_value=[TagSuggestion(name="budget", color="#3b82f6", confidence=0.9, reasoning="money")]
    )
    return {
        "ingestion_service": ingestion,
        "retrieval_service": retrieval,
        "memory_store": store,
        "tag_suggester": tags,
    }


class TestParser:
    def test_ingest_requires_source(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["ingest", "--owner", "u1", "--source-type", "note"])

    def test_ingest_text(self) -> None:
        args = _build_parser().parse_args(
            ["ingest", "--owner", "u1", "--source-type", "chat", "--text", "hello", "--document-id", "c1"]
        )
        assert args.command == "ingest"
        assert args.text == "hello"
        assert args.document_id == "c1"

    def test_search_defaults(self) -> None:
        args = _build_parser().parse_args(["search", "--owner", "u1", "--query", "rent"])
        assert args.category is None
        assert args.top_k == 5
        assert args.threshold is None

    def test_invalid_category_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["search", "--owner", "u1", "--query", "q", "--category", "travel"])


class TestReadDocument:
    def test_json_file_parsed_as_tree(self, tmp_path: Path) -> None:
        path = tmp_path / "note.json"
        path.write_text(json.dumps({"type": "doc", "content": [{"type": "text", "text": "hi"}]}))
        body, text = _read_document(SimpleNamespace(text=None, file=str(path)))
        assert isinstance(body, ContainerNode)
        assert text is None

    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "transcript.txt"
        path.write_text("Call the bank.")
        assert _read_document(SimpleNamespace(text=None, file=str(path))) == (None, "Call the bank.")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            _read_document(SimpleNamespace(text=None, file=str(tmp_path / "nope.txt")))


class TestHandlers:
    @pytest.mark.asyncio
    async def test_ingest_prints_result(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        args = _build_parser().parse_args(["ingest", "--owner", "u1", "--source-type", "note", "--text", "Paid rent."])

        assert await _handle_ingest(args, components) == 0

        document = components["ingestion_service"].ingest.call_args.args[0]
        assert document.text == "Paid rent."
        out = capsys.readouterr().out
        assert "finance" in out
        assert "2/2" in out

    @pytest.mark.asyncio
    async def test_ingest_error_returns_nonzero(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        components["ingestion_service"].ingest.side_effect = ValidationError(message="no text")
        args = _build_parser().parse_args(["ingest", "--owner", "u1", "--source-type", "note", "--text", " "])

        assert await _handle_ingest(args, components) == 1
        assert "no text" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_search_scopes(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        parser = _build_parser()

        await _handle_search(parser.parse_args(["search", "--owner", "u1", "--query", "rent"]), components)
        await _handle_search(
            parser.parse_args(["search", "--owner", "u1", "--query", "rent", "--category", "finance"]),
            components,
        )

        components["retrieval_service"].retrieve_across_categories.assert_awaited_once()
        assert components["retrieval_service"].retrieve.call_args.kwargs["category"] is MemoryCategory.FINANCE
        assert "No relevant memories" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_stats(self, capsys: pytest.CaptureFixture[str]) -> None:
        args = _build_parser().parse_args(["stats", "--owner", "u1"])
        assert await _handle_stats(args, _components()) == 0
        out = capsys.readouterr().out
        assert "Total chunks: 3" in out
        assert "finance" in out

    @pytest.mark.asyncio
    async def test_suggest_tags(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        args = _build_parser().parse_args(
            ["suggest-tags", "--text", "budget review", "--existing", "money", "--existing", "q3"]
        )
        assert await _handle_suggest_tags(args, components) == 0
        assert components["tag_suggester"].suggest.call_args.args[2] == ["money", "q3"]
        assert "budget" in capsys.readouterr().out
