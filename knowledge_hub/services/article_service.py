"""Article CRUD with validation and identifier allocation.

Sits between the HTTP/CLI surface and the article store:

- validates caller payloads before anything is written,
- allocates identifiers for articles that arrive without one,
- derives summaries from content,
- turns "no such article" into :class:`NotFoundError`.
"""

from __future__ import annotations

from typing import Any

import structlog

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.models.article import (
    Article,
    ArticleStatus,
    BulkInsertResult,
    Identity,
    normalize_tags,
)
from knowledge_hub.services.identifier_allocator import IdentifierAllocator, is_valid_identifier
from knowledge_hub.services.summary import DEFAULT_SUMMARY_BUDGET, summarize
from knowledge_hub.utils.errors import NotFoundError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

# Keys the store manages itself; never taken from an update payload.
_PROTECTED_FIELDS = frozenset({"identifier", "created_at", "updated_at"})


class ArticleService:
    """Validated create/read/update/delete over an :class:`IArticleStore`."""

    def __init__(
        self,
        store: IArticleStore,
        allocator: IdentifierAllocator,
        *,
        summary_budget: int = DEFAULT_SUMMARY_BUDGET,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._summary_budget = summary_budget

    # ------------------------------------------------------------------
    # Single-article operations
    # ------------------------------------------------------------------

    async def create(self, fields: dict[str, Any], identity: Identity | None = None) -> Article:
        """Create one article.

        ``title`` and ``content`` are required.  An ``identifier`` supplied
        by the caller must look like ``KB-001001`` and is used as-is (a
        collision raises DuplicateIdentifierError); otherwise one is allocated.
        """
        title = _clean_str(fields.get("title"))
        content = fields.get("content")
        if not title or content is None or not str(content).strip():
            raise ValidationError("title and content are required")

        identifier = _clean_str(fields.get("identifier"))
        if identifier and not is_valid_identifier(identifier):
            raise ValidationError(f"Invalid identifier: {identifier!r}")
        identifier = identifier or await self._allocator.allocate()
        article = self._build_article(identifier, fields, title=title, content=str(content))
        stored = await self._store.create(article)

        logger.info(
            "article_create_requested",
            identifier=stored.identifier,
            by=identity.id if identity else None,
        )
        return stored

    async def get(self, identifier: str) -> Article:
        article = await self._store.find_by_identifier(identifier)
        if article is None:
            raise NotFoundError(f"Article {identifier} not found")
        return article

    async def update(
        self,
        identifier: str,
        fields: dict[str, Any],
        identity: Identity | None = None,
    ) -> Article:
        """Apply a partial update.

        The ``identifier`` key is ignored, so an article can never be
        renumbered.  A summary is regenerated only when the payload sends
        an empty ``summary`` together with new ``content``.
        """
        changes = {k: v for k, v in fields.items() if k not in _PROTECTED_FIELDS}

        if "title" in changes:
            title = _clean_str(changes["title"])
            if not title:
                raise ValidationError("title must not be empty")
            changes["title"] = title
        if "status" in changes:
            changes["status"] = parse_status(changes["status"])
        if "tags" in changes:
            changes["tags"] = _parse_tags(changes["tags"])
        for key in ("summary", "content", "category"):
            if key in changes:
                changes[key] = "" if changes[key] is None else str(changes[key])
        if "content" in changes and changes.get("summary") == "":
            changes["summary"] = summarize(changes["content"], self._summary_budget)

        updated = await self._store.update(identifier, changes)
        if updated is None:
            raise NotFoundError(f"Article {identifier} not found")

        logger.info(
            "article_update_requested",
            identifier=identifier,
            by=identity.id if identity else None,
        )
        return updated

    async def delete(self, identifier: str, identity: Identity | None = None) -> None:
        if not await self._store.delete(identifier):
            raise NotFoundError(f"Article {identifier} not found")
        logger.info(
            "article_delete_requested",
            identifier=identifier,
            by=identity.id if identity else None,
        )

    async def list_all(self) -> list[Article]:
        return await self._store.find_all(sort_by_identifier=True)

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    async def bulk_insert(self, items: list[dict[str, Any]]) -> BulkInsertResult:
        """Insert many caller-supplied articles in one batch.

        Every item must carry a title and any identifier it supplies must
        be well formed; the whole batch is rejected before any write if
        not.  Items without an identifier get one allocated.  Collisions
        are reported, not raised.
        """
        if not items:
            raise ValidationError("Expected a non-empty array of articles")

        missing = [i for i, item in enumerate(items) if not _clean_str(item.get("title"))]
        if missing:
            raise ValidationError(f"Items without a title at positions: {missing}")
        malformed = [
            i
            for i, item in enumerate(items)
            if _clean_str(item.get("identifier"))
            and not is_valid_identifier(_clean_str(item.get("identifier")))
        ]
        if malformed:
            raise ValidationError(f"Items with an invalid identifier at positions: {malformed}")

        needs_id = {i for i, item in enumerate(items) if not _clean_str(item.get("identifier"))}
        allocated = iter(await self._allocator.allocate_many(len(needs_id)))
        articles: list[Article] = []
        for index, item in enumerate(items):
            identifier = _clean_str(item.get("identifier"))
            if index in needs_id:
                identifier = next(allocated)
            articles.append(
                self._build_article(
                    identifier,
                    item,
                    title=_clean_str(item.get("title")),
                    content=str(item.get("content") or ""),
                )
            )

        return await self._store.bulk_insert(articles, allow_partial_failure=True)

    async def stats(self) -> dict[str, Any]:
        return await self._store.get_stats()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_article(
        self,
        identifier: str,
        fields: dict[str, Any],
        *,
        title: str,
        content: str,
    ) -> Article:
        summary = _clean_str(fields.get("summary")) or summarize(content, self._summary_budget)
        return Article(
            identifier=identifier,
            title=title,
            summary=summary,
            content=content,
            tags=_parse_tags(fields.get("tags")),
            status=parse_status(fields.get("status")),
            category=_clean_str(fields.get("category")),
        )


def _clean_str(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def parse_status(value: Any) -> ArticleStatus:
    if value is None or value == "":
        return ArticleStatus.PUBLISHED
    try:
        return ArticleStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status '{value}'") from None


def _parse_tags(value: Any) -> list[str]:
    """Accept a list of tags or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return normalize_tags(value.split(","))
    if isinstance(value, (list, tuple)):
        return normalize_tags([str(v) for v in value])
    raise ValidationError("tags must be a list of strings")
