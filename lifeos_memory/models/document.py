"""Source document models consumed by the ingestion pipeline.

Rich-text note bodies arrive as a dynamically-typed JSON tree
(``{"type": ..., "text": ..., "content": [...]}``).  Here that tree is a
closed tagged variant, ``TextNode | ContainerNode``, so text extraction is
total: :func:`parse_document_tree` converts whatever JSON arrives into the
variant, and malformed pieces become empty containers instead of errors.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from lifeos_memory.models.memory import SourceType


class TextNode(BaseModel):
    """A leaf carrying text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str = ""


class ContainerNode(BaseModel):
    """An interior node holding an ordered list of children."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["container"] = "container"
    node_type: str = Field(default="doc", description="Original editor node type, e.g. 'paragraph'.")
    children: list[DocumentNode] = Field(default_factory=list)


DocumentNode = Annotated[Union[TextNode, ContainerNode], Field(discriminator="kind")]

ContainerNode.model_rebuild()


def parse_document_tree(raw: Any) -> TextNode | ContainerNode:
    """Convert a raw editor JSON tree into the tagged variant.

    * ``str`` → :class:`TextNode`
    * ``{"type": "text", "text": ...}`` → :class:`TextNode` (non-string text → ``""``)
    * any other dict → :class:`ContainerNode` of its ``content`` list
    * ``list`` → :class:`ContainerNode` of its items
    * anything else → empty :class:`ContainerNode`
    """
    if isinstance(raw, (TextNode, ContainerNode)):
        return raw
    if isinstance(raw, str):
        return TextNode(text=raw)
    if isinstance(raw, list):
        return ContainerNode(children=[parse_document_tree(item) for item in raw])
    if not isinstance(raw, dict):
        return ContainerNode()

    node_type = raw.get("type")
    node_type = node_type if isinstance(node_type, str) else "unknown"
    if node_type == "text":
        text = raw.get("text")
        return TextNode(text=text if isinstance(text, str) else "")

    content = raw.get("content")
    if not isinstance(content, list):
        return ContainerNode(node_type=node_type)
    return ContainerNode(
        node_type=node_type,
        children=[parse_document_tree(child) for child in content],
    )


class SourceDocument(BaseModel):
    """One note, recording transcript or chat turn to ingest.

    Notes usually carry a ``body`` tree; transcripts and chat turns carry
    plain ``text``.  When both are present they are concatenated (text
    first).  ``document_id`` is the weak back-reference to the originating
    row; when present it also drives chunk idempotency keys.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: str
    source_type: SourceType
    document_id: str | None = None
    title: str | None = None
    body: Optional[DocumentNode] = None
    text: str | None = None
