"""Utility modules for the knowledge hub.

- **errors** -- Domain exception hierarchy rooted at KnowledgeHubError; each
  class carries the HTTP status the API layer maps it to.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from knowledge_hub.utils.errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DuplicateIdentifierError,
    ExtractionError,
    KnowledgeHubError,
    NoSectionsFoundError,
    NotFoundError,
    StoreUnavailableError,
    UnsupportedFormatError,
    ValidationError,
)
from knowledge_hub.utils.logging import configure_logging, get_logger

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConfigurationError",
    "DuplicateIdentifierError",
    "ExtractionError",
    "KnowledgeHubError",
    "NoSectionsFoundError",
    "NotFoundError",
    "StoreUnavailableError",
    "UnsupportedFormatError",
    "ValidationError",
    "configure_logging",
    "get_logger",
]
