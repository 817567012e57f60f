"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Settings are read automatically from two sources (in priority order):
#
#   1. **Environment variables**: e.g. OPENAI_API_KEY=sk-abc123
#   2. **.env file**: key=value lines in the project root .env file
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
# below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Memory engine settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM / embedding providers ===
    # Empty string = "not configured" → provider selection in main.py skips it.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_text_model: str = ""  # Override classification model (default gpt-4o-mini)
    openai_embedding_model: str = ""  # Override embedding model (default text-embedding-3-small)
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = "http://localhost:11434"
    llm_timeout_seconds: float = 25.0

    # === Memory store ===
    memory_store_backend: str = "sqlite"  # "sqlite" or "chromadb"
    memory_db_path: str = "data/memories.db"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "lifeos_memories"
    # 0 = adopt the embedding provider's dimension at startup.
    embedding_dimension: int = 0

    # === Ingestion ===
    max_chunk_length: int = 1000
    categorizer_max_input_chars: int = 2000
    embedding_timeout_seconds: float = 20.0
    embedding_max_concurrency: int = 5
    ingestion_workers: int = 2
    ingestion_max_attempts: int = 3
    ingestion_retry_base_delay: float = 1.0
    ingestion_job_retention: int = 1000  # finished jobs kept queryable in memory

    # === Retrieval ===
    retrieval_top_k: int = 5
    retrieval_threshold: float = 0.5
    retrieval_history_threshold: float = 0.3
    retrieval_history_limit: int = 10

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that are configured, in priority order."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
