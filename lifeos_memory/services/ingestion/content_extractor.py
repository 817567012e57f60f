"""Plain-text extraction from rich-text document trees.

Note bodies are stored as editor JSON trees; everything downstream
(categorization, chunking, embedding) works on plain text.  Extraction is
a pre-order walk that joins leaf texts with a single space.
"""

from __future__ import annotations

from lifeos_memory.models.document import ContainerNode, SourceDocument, TextNode


def extract_text(node: TextNode | ContainerNode | None) -> str:
    """Return the concatenated text of every leaf under *node*.

    Leaves are visited in document order and joined with one space.
    Containers without text, and empty leaves, contribute nothing, so no
    stray separators appear.  Iterative, so deeply nested trees cannot hit
    the recursion limit.
    """
    if node is None:
        return ""

    parts: list[str] = []
    stack: list[TextNode | ContainerNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, TextNode):
            if current.text:
                parts.append(current.text)
        else:
            stack.extend(reversed(current.children))
    return " ".join(parts)


def build_document_text(title: str | None, body_text: str) -> str:
    """Return ``"{title}\\n\\n{body_text}"`` when a title is present, else *body_text*."""
    if title:
        return f"{title}\n\n{body_text}"
    return body_text


def document_text(document: SourceDocument) -> str:
    """Return the full text the pipeline ingests for *document*.

    Plain ``text`` (transcripts, chat turns) and the extracted ``body`` are
    joined with a blank line, then the title is prefixed.
    """
    pieces = [document.text or "", extract_text(document.body)]
    body_text = "\n\n".join(piece for piece in pieces if piece.strip())
    return build_document_text(document.title, body_text)
