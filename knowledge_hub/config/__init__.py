"""Configuration module - exports Settings and load_config."""

from knowledge_hub.config.loader import load_config
from knowledge_hub.config.settings import Settings

__all__ = ["Settings", "load_config"]
