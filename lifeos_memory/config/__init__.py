"""Configuration module: exports Settings and load_config."""

from lifeos_memory.config.loader import load_config
from lifeos_memory.config.settings import Settings

__all__ = ["Settings", "load_config"]
