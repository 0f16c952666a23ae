"""Abstract base class for article persistence providers.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# IArticleStore is the contract between the services layer and the
# persistence backend.  The concrete implementation is SQLiteArticleStore
# (knowledge_hub/providers/store/sqlite_article_store.py).
#
# Besides article CRUD the store owns two primitives that carry the
# system's concurrency guarantees:
#
#   - ``increment_counter`` - one indivisible increment-and-fetch on a
#     named counter cell.  Identifier uniqueness is rooted here.
#   - the UNIQUE constraint behind ``create``/``bulk_insert`` - a racing
#     insert of the same identifier loses with DuplicateIdentifierError.
#
# All operations are async so the backend can be swapped for a
# network-backed store without touching the services.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from knowledge_hub.models.article import Article, ArticleStatus, BulkInsertResult


class IArticleStore(ABC):
    """Contract for article persistence, counter cells, and text search."""

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    # ── Article CRUD ───────────────────────────────────────────────────

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """Persist a new article and return it with timestamps populated.

        Raises
        ------
        DuplicateIdentifierError
            If ``article.identifier`` already exists.  The existing record
            is left unchanged.
        """

    @abstractmethod
    async def update(self, identifier: str, fields: dict[str, Any]) -> Article | None:
        """Apply a partial update and return the stored article.

        The ``identifier`` key (and the store-managed timestamps) are
        silently removed from *fields*.  Returns None if no article has
        that identifier.
        """

    @abstractmethod
    async def delete(self, identifier: str) -> bool:
        """Delete an article.  Returns True if a record was removed."""

    @abstractmethod
    async def find_by_identifier(self, identifier: str) -> Article | None:
        """Return the article with this identifier, or None."""

    @abstractmethod
    async def find_all(self, *, sort_by_identifier: bool = True) -> list[Article]:
        """Return every article, sorted by identifier or newest first."""

    @abstractmethod
    async def bulk_insert(
        self,
        articles: list[Article],
        *,
        allow_partial_failure: bool = True,
    ) -> BulkInsertResult:
        """Insert many articles.

        Parameters
        ----------
        articles:
            Articles with identifiers already assigned.
        allow_partial_failure:
            When True, colliding identifiers are reported in
            ``BulkInsertResult.duplicates`` and every other article is
            inserted.  When False, the first collision rolls the batch back
            and raises DuplicateIdentifierError.
        """

    # ── Counter cells ──────────────────────────────────────────────────

    @abstractmethod
    async def increment_counter(
        self,
        name: str,
        *,
        step: int = 1,
        floor: int = 0,
        initial: int = 1000,
    ) -> int:
        """Atomically advance a counter and return its new value.

        The new value is ``max(current, floor) + step``; a missing counter
        is created as ``max(initial, floor) + step``.  The read and the
        write happen in one indivisible store operation.
        """

    # ── Search primitives ──────────────────────────────────────────────

    @abstractmethod
    async def search_text(
        self,
        terms: list[str],
        *,
        status: ArticleStatus | None = ArticleStatus.PUBLISHED,
        limit: int = 50,
    ) -> list[tuple[Article, float]]:
        """Full-text match over title, summary, content and tags.

        Returns ``(article, score)`` pairs, higher score = more relevant,
        ordered by score, then most recently updated, then identifier.
        """

    @abstractmethod
    async def match_identifiers(
        self,
        fragment: str,
        *,
        status: ArticleStatus | None = ArticleStatus.PUBLISHED,
        limit: int = 50,
    ) -> list[Article]:
        """Return articles whose identifier contains *fragment* (case-insensitive).

        Ordered most recently updated first, then by identifier, before
        *limit* is applied.
        """

    # ── Statistics ─────────────────────────────────────────────────────

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Return aggregate counts by status and category plus counter values."""
