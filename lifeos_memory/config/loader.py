"""Layered configuration: ``config/config.yaml`` under environment settings.

The YAML file holds static defaults and the lists that do not fit an
environment variable (history markers).  :class:`Settings` values read from
the environment or ``.env`` are deep-merged on top, so a deploy-time
``RETRIEVAL_THRESHOLD=0.6`` wins over ``retrieval.threshold`` in the file.
"""

from pathlib import Path

import yaml

from lifeos_memory.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Return the YAML config with :class:`Settings` overrides merged in.

    Args:
        path: YAML file; a missing file contributes nothing.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.
    """
    config_path = Path(path)
    config: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

    _deep_merge(config, _settings_overrides(settings or Settings()))
    return config


def _settings_overrides(settings: Settings) -> dict:
    return {
        "app": {"host": settings.app_host, "port": settings.app_port, "env": settings.app_env},
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
            "timeout_seconds": settings.llm_timeout_seconds,
        },
        "store": {
            "backend": settings.memory_store_backend,
            "db_path": settings.memory_db_path,
            "chromadb_persist_dir": settings.chromadb_persist_dir,
            "chromadb_collection": settings.chromadb_collection,
        },
        "ingestion": {
            "max_chunk_length": settings.max_chunk_length,
            "workers": settings.ingestion_workers,
            "max_attempts": settings.ingestion_max_attempts,
        },
        "retrieval": {
            "top_k": settings.retrieval_top_k,
            "threshold": settings.retrieval_threshold,
            "history": {
                "threshold": settings.retrieval_history_threshold,
                "limit": settings.retrieval_history_limit,
            },
        },
        "logging": {"level": settings.log_level},
    }


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge *overrides* into *base* in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
