"""Knowledge-base domain models - articles, sections, and ingestion results.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph - no imports from upper layers).
#
# Frozen Pydantic v2 models.  Mutations (e.g. an update touching the title)
# go through ``model_copy(update={...})`` or a fresh store read.
#
# One canonical Article shape: ``category`` and ``status`` always exist
# with defaults, and ``summary`` is always present (derived from content
# when the caller supplies none).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CATEGORY = "General"
UNTITLED = "Untitled"


# ─── ArticleStatus ───────────────────────────────────────────────────
# Only PUBLISHED articles are visible to search.
class ArticleStatus(str, Enum):
    """Publication state of an article."""

    PUBLISHED = "published"
    DRAFT = "draft"


# ─── Article ─────────────────────────────────────────────────────────
class Article(BaseModel):
    """A single knowledge-base article.

    ``identifier`` is assigned once (by the allocator or the caller) and is
    never changed by updates.  ``created_at``/``updated_at`` are managed by
    the store and are ``None`` until the article has been persisted.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=1, description="Permanent identifier, e.g. KB-001001.")
    title: str = Field(min_length=1, description="Article title.")
    summary: str = Field(default="", description="Short preview derived from content.")
    content: str = Field(default="", description="Article body text.")
    tags: list[str] = Field(default_factory=list, description="Ordered, de-duplicated tags.")
    status: ArticleStatus = Field(default=ArticleStatus.PUBLISHED)
    category: str = Field(default=DEFAULT_CATEGORY)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("category")
    @classmethod
    def _default_category(cls, value: str) -> str:
        return value.strip() or DEFAULT_CATEGORY


# ─── ArticleSection ──────────────────────────────────────────────────
# Output of the section splitter, before identifiers and summaries exist.
class ArticleSection(BaseModel):
    """A candidate article carved out of a longer document."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default=UNTITLED)
    content: str = Field(default="")


# ─── ExtractedDocument ───────────────────────────────────────────────
class ExtractedDocument(BaseModel):
    """Text produced by a document converter.

    ``is_markup`` is True when ``text`` is simple HTML (headings and
    paragraphs) rather than plain text.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    extension: str
    is_markup: bool = False


# ─── BulkInsertResult ────────────────────────────────────────────────
class BulkInsertResult(BaseModel):
    """Outcome of a bulk insert: which identifiers landed, which collided."""

    model_config = ConfigDict(frozen=True)

    inserted: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)


# ─── ImportResult ────────────────────────────────────────────────────
class ImportResult(BaseModel):
    """Outcome of a text import or document upload."""

    model_config = ConfigDict(frozen=True)

    created: int = 0
    identifiers: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)

    @property
    def first_identifier(self) -> str | None:
        return self.identifiers[0] if self.identifiers else None

    @property
    def last_identifier(self) -> str | None:
        return self.identifiers[-1] if self.identifiers else None


# ─── SearchHit ───────────────────────────────────────────────────────
class SearchHit(BaseModel):
    """A ranked search result.

    ``score`` is ``inf`` for identifier matches (see SearchRanker).
    """

    model_config = ConfigDict(frozen=True)

    article: Article
    score: float
    matched_identifier: bool = False


# ─── Identity ────────────────────────────────────────────────────────
class Identity(BaseModel):
    """Caller identity returned by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    department: str | None = None


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Strip tags, drop empties, and remove duplicates keeping first occurrence."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or []:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result
