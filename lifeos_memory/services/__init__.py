"""Domain services: ingestion pipeline, retrieval and tag suggestion."""
