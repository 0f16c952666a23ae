"""Domain models for the knowledge hub."""

from knowledge_hub.models.article import (
    DEFAULT_CATEGORY,
    UNTITLED,
    Article,
    ArticleSection,
    ArticleStatus,
    BulkInsertResult,
    ExtractedDocument,
    Identity,
    ImportResult,
    SearchHit,
    normalize_tags,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "UNTITLED",
    "Article",
    "ArticleSection",
    "ArticleStatus",
    "BulkInsertResult",
    "ExtractedDocument",
    "Identity",
    "ImportResult",
    "SearchHit",
    "normalize_tags",
]
