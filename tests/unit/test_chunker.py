"""Unit tests for TextChunker sentence packing."""

from __future__ import annotations

import pytest

from lifeos_memory.services.ingestion.chunker import TextChunker


class TestTextChunker:
    def test_empty_input_yields_no_chunks(self) -> None:
        chunker = TextChunker(max_chunk_length=50)
        assert chunker.chunk("") == []
        assert chunker.chunk("   \n\t ") == []

    def test_short_text_returned_whole(self) -> None:
        chunker = TextChunker(max_chunk_length=100)
        text = "Paid rent on the 1st. Renewed insurance."
        assert chunker.chunk(text) == [text]

    def test_text_exactly_at_limit_is_not_split(self) -> None:
        text = "a" * 40
        assert TextChunker(max_chunk_length=40).chunk(text) == [text]

    def test_long_text_splits_on_sentence_boundaries(self) -> None:
        chunker = TextChunker(max_chunk_length=30)
        text = "First sentence here. Second sentence here! Third one here? Fourth."
        chunks = chunker.chunk(text)

        assert len(chunks) > 1
        assert all(len(c) <= 30 for c in chunks)
        assert chunks[0] == "First sentence here"

    def test_rejoined_chunks_reproduce_normalized_text(self) -> None:
        chunker = TextChunker(max_chunk_length=25)
        text = "Alpha beta gamma. Delta epsilon! Zeta eta theta? Iota kappa lambda mu."
        chunks = chunker.chunk(text)
        assert ". ".join(chunks) == "Alpha beta gamma. Delta epsilon. Zeta eta theta. Iota kappa lambda mu."

    def test_chunks_are_never_empty(self) -> None:
        chunker = TextChunker(max_chunk_length=10)
        text = "One. Two. Three. Four. Five. Six. Seven."
        assert all(c for c in chunker.chunk(text))

    def test_trailing_delimiter_and_whitespace_adds_no_empty_chunk(self) -> None:
        chunker = TextChunker(max_chunk_length=10)
        chunks = chunker.chunk("aaaaaaaa. bbbbbbbbb. ")
        assert chunks == ["aaaaaaaa", "bbbbbbbbb"]
        assert all(c for c in chunks)

    def test_oversized_sentence_kept_whole(self) -> None:
        chunker = TextChunker(max_chunk_length=20)
        long_sentence = "This single sentence is much longer than twenty characters"
        chunks = chunker.chunk(f"{long_sentence}. Short.")
        assert chunks[0] == long_sentence
        assert chunks[1] == "Short."

    def test_text_without_delimiters_kept_as_single_chunk(self) -> None:
        text = "word " * 50
        chunks = TextChunker(max_chunk_length=20).chunk(text)
        assert chunks == [text]

    def test_per_call_limit_overrides_default(self) -> None:
        chunker = TextChunker(max_chunk_length=1000)
        text = "Sentence one is here. Sentence two is here. Sentence three is here."
        assert chunker.chunk(text) == [text]
        assert len(chunker.chunk(text, max_chunk_length=25)) == 3

    def test_needs_chunking(self) -> None:
        chunker = TextChunker(max_chunk_length=10)
        assert chunker.needs_chunking("short") is False
        assert chunker.needs_chunking("definitely longer") is True
        assert chunker.needs_chunking("definitely longer", max_chunk_length=100) is False

    def test_max_chunk_length_property(self) -> None:
        assert TextChunker(max_chunk_length=321).max_chunk_length == 321

    @pytest.mark.parametrize("bad_limit", [0, -5])
    def test_invalid_limit_rejected(self, bad_limit: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_chunk_length=bad_limit)
        with pytest.raises(ValueError):
            TextChunker().chunk("some text", max_chunk_length=bad_limit)
