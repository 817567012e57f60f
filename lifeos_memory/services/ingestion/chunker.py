"""Sentence-boundary text chunking for embedding.

Splits long text into chunks of at most ``max_chunk_length`` characters.
Sentence-like units are found with the delimiter pattern ``[.!?]\\s+``
(the punctuation and the whitespace after it are consumed) and greedily
packed into chunks, re-joined with ``". "``.  Because every unit is kept
in order, ``". ".join(chunks)`` reproduces the input with each delimiter
normalised to ``". "``.

A single sentence longer than ``max_chunk_length`` is emitted as its own
oversized chunk rather than being split mid-sentence.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

_SENTENCE_DELIMITER = re.compile(r"[.!?]\s+")
_JOINER = ". "


class TextChunker:
    """Greedy sentence-packing chunker.

    Parameters
    ----------
    max_chunk_length:
        Default soft upper bound on chunk length, in characters.
    """

    def __init__(self, max_chunk_length: int = 1000) -> None:
        if max_chunk_length < 1:
            raise ValueError(f"max_chunk_length must be >= 1, got {max_chunk_length}")
        self._max_chunk_length = max_chunk_length

    @property
    def max_chunk_length(self) -> int:
        return self._max_chunk_length

    def needs_chunking(self, text: str, max_chunk_length: int | None = None) -> bool:
        """Return ``True`` if *text* is longer than the chunk bound."""
        limit = self._resolve_limit(max_chunk_length)
        return len(text) > limit

    def chunk(self, text: str, max_chunk_length: int | None = None) -> list[str]:
        """Split *text* into chunks no longer than *max_chunk_length*.

        Parameters
        ----------
        text:
            The text to split.
        max_chunk_length:
            Overrides the instance default for this call.

        Returns
        -------
        list[str]
            ``[]`` for empty/whitespace input, ``[text]`` when the text
            already fits, otherwise the packed sentence chunks.
        """
        limit = self._resolve_limit(max_chunk_length)
        if not text or not text.strip():
            return []
        if len(text) <= limit:
            return [text]

        # A trailing delimiter leaves an empty final unit.
        units = [unit for unit in _SENTENCE_DELIMITER.split(text) if unit]
        chunks: list[str] = []
        current: list[str] = []
        current_len = 0

        for unit in units:
            if current and current_len + len(_JOINER) + len(unit) > limit:
                chunks.append(_JOINER.join(current))
                current = []
                current_len = 0
            current_len += len(unit) if not current else len(_JOINER) + len(unit)
            current.append(unit)

        if current:
            chunks.append(_JOINER.join(current))

        oversized = sum(1 for c in chunks if len(c) > limit)
        logger.debug(
            "text_chunked",
            input_chars=len(text),
            sentences=len(units),
            chunks=len(chunks),
            oversized=oversized,
        )
        return chunks

    def _resolve_limit(self, max_chunk_length: int | None) -> int:
        if max_chunk_length is None:
            return self._max_chunk_length
        if max_chunk_length < 1:
            raise ValueError(f"max_chunk_length must be >= 1, got {max_chunk_length}")
        return max_chunk_length
