"""LifeOS memory engine: ingestion and semantic recall of personal content.

Notes, recording transcripts and chat turns are categorized, chunked,
embedded and stored per owner; retrieval returns the owner's most similar
chunks within a category as context for downstream agents.
"""

__version__ = "0.1.0"
