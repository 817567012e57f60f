"""Concrete adapters for the interfaces in ``lifeos_memory.interfaces``."""
