"""Command-line tools for the LifeOS memory engine.

- ``python -m lifeos_memory.cli.memory``: ingest a document directly,
  search an owner's memories, show per-owner stats, or suggest tags.

Heavy imports (providers, stores) are deferred inside functions to keep
startup fast for ``--help``.
"""
