"""Standalone CLI for the LifeOS memory store.

Usage::

    python -m lifeos_memory.cli.memory ingest --owner u1 --source-type note \\
        --file notes/budget.json --title "Budget" --document-id n-42

    python -m lifeos_memory.cli.memory ingest --owner u1 --source-type chat \\
        --text "I spent $500 on groceries this month."

    python -m lifeos_memory.cli.memory search --owner u1 --query "groceries" \\
        --category finance

    python -m lifeos_memory.cli.memory stats --owner u1

    python -m lifeos_memory.cli.memory suggest-tags --resource-type note \\
        --text "Quarterly planning for the marketing team"

Ingestion here runs synchronously (no queue) so the result can be printed.
Providers are assembled by the same factory the API uses, so the CLI always
embeds with the model the existing store was built with.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any


def _build_components() -> dict[str, Any]:
    """Assemble providers and services exactly as the API does."""
    from lifeos_memory.main import build_components, config, settings

    return build_components(settings, config)


def _read_document(args: argparse.Namespace) -> tuple[Any, str | None]:
    """Return ``(body_tree, text)`` from ``--file`` or ``--text``.

    ``.json`` files are parsed as a document tree; anything else is read as
    plain text.
    """
    from lifeos_memory.models.document import parse_document_tree

    if args.text is not None:
        return None, args.text

    path = Path(args.file)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_document_tree(json.loads(raw)), None
    return None, raw


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from lifeos_memory.models.document import SourceDocument
    from lifeos_memory.models.memory import SourceType
    from lifeos_memory.utils.errors import MemoryEngineError

    try:
        body, text = _read_document(args)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    document = SourceDocument(
        owner_id=args.owner,
        source_type=SourceType(args.source_type),
        document_id=args.document_id,
        title=args.title,
        body=body,
        text=text,
    )

    try:
        result = await components["ingestion_service"].ingest(document)
    except MemoryEngineError as exc:
        print(f"Ingestion failed: {exc}", file=sys.stderr)
        return 1

    print(f"Category:      {result.category.value}")
    if result.used_fallback:
        print("               (fallback classification)")
    print(f"Summary:       {result.summary}")
    print(f"Chunks stored: {result.chunks_stored}/{result.chunks_attempted}")
    if result.chunks_failed:
        print(f"Chunks failed: {result.chunks_failed}")
    print(f"Time:          {result.ingestion_time:.2f}s")
    return 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from lifeos_memory.models.memory import MemoryCategory
    from lifeos_memory.services.retrieval_service import format_memory_context
    from lifeos_memory.utils.errors import MemoryEngineError

    retrieval = components["retrieval_service"]
    try:
        if args.category:
            matches = await retrieval.retrieve(
                owner_id=args.owner,
                category=MemoryCategory(args.category),
                query=args.query,
                top_k=args.top_k,
                threshold=args.threshold,
            )
            scope = args.category
        else:
            matches = await retrieval.retrieve_across_categories(
                owner_id=args.owner,
                query=args.query,
                limit=args.top_k,
                threshold=args.threshold,
            )
            scope = "all categories"
    except MemoryEngineError as exc:
        print(f"Search failed: {exc}", file=sys.stderr)
        return 1

    print(format_memory_context(matches, scope))
    return 0


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    stats = await components["memory_store"].get_stats(args.owner)

    print(f"Owner:        {stats.owner_id}")
    print(f"Total chunks: {stats.total_chunks}")
    if stats.chunks_by_category:
        print("By category:")
        for category, count in sorted(stats.chunks_by_category.items()):
            print(f"  {category:<10} {count}")
    if stats.chunks_by_source_type:
        print("By source type:")
        for source_type, count in sorted(stats.chunks_by_source_type.items()):
            print(f"  {source_type:<10} {count}")
    return 0


async def _handle_suggest_tags(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from lifeos_memory.models.memory import ResourceType

    suggestions = await components["tag_suggester"].suggest(
        args.text,
        ResourceType(args.resource_type),
        args.existing or None,
    )
    if not suggestions:
        print("No tag suggestions.")
        return 0
    for suggestion in suggestions:
        print(f"{suggestion.name:<20} {suggestion.color}  {suggestion.confidence:.2f}  {suggestion.reasoning}")
    return 0


_HANDLERS = {
    "ingest": _handle_ingest,
    "search": _handle_search,
    "stats": _handle_stats,
    "suggest-tags": _handle_suggest_tags,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifeos-memory",
        description="Ingest into and query the LifeOS memory store.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a note, transcript or chat turn")
    ingest.add_argument("--owner", required=True, help="Owning account id")
    ingest.add_argument(
        "--source-type",
        required=True,
        choices=["note", "recording", "chat"],
        help="Provenance of the content",
    )
    source = ingest.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Text file, or .json document tree")
    source.add_argument("--text", help="Inline plain text")
    ingest.add_argument("--title", default=None)
    ingest.add_argument("--document-id", default=None, help="Originating row id")

    search = subparsers.add_parser("search", help="Semantic search over an owner's memories")
    search.add_argument("--owner", required=True)
    search.add_argument("--query", required=True)
    search.add_argument(
        "--category",
        choices=["finance", "work", "health", "general"],
        default=None,
        help="Restrict to one category (default: all)",
    )
    search.add_argument("--top-k", type=int, default=5)
    search.add_argument("--threshold", type=float, default=None)

    stats = subparsers.add_parser("stats", help="Show per-owner memory counts")
    stats.add_argument("--owner", required=True)

    tags = subparsers.add_parser("suggest-tags", help="Suggest 3-5 tags for some content")
    tags.add_argument("--text", required=True)
    tags.add_argument(
        "--resource-type",
        choices=["note", "recording", "task"],
        default="note",
    )
    tags.add_argument(
        "--existing",
        action="append",
        default=[],
        help="Existing tag name to exclude (repeatable)",
    )

    return parser


async def _run(args: argparse.Namespace) -> int:
    components = _build_components()
    await components["memory_store"].initialize()
    return await _HANDLERS[args.command](args, components)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the matching subcommand."""
    args = _build_parser().parse_args(argv)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
