"""Concrete implementations of the interfaces in ``knowledge_hub.interfaces``."""
