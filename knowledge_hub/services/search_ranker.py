"""Query -> ranked list of published articles.

Two match sources are unioned:

- **identifier matches** -- the query (trimmed) is a case-insensitive
  substring of an article identifier, so ``"001042"`` or ``"kb-0010"``
  finds articles without any text overlap.
- **text matches** -- the store's FTS index over title, summary, content
  and tags, with OR semantics across the query's word tokens.

Ordering: identifier matches form a top tier and are treated as maximally
relevant (``score = inf``).  Within a tier results are ordered by score
(descending), then most recently updated, then identifier.  Each article
appears at most once.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone

import structlog

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.models.article import ArticleStatus, SearchHit

logger = structlog.get_logger(logger_name=__name__)

_WORD = re.compile(r"\w+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class SearchRanker:
    """Ranks published articles for a free-text query.

    Parameters
    ----------
    store:
        Article store providing ``match_identifiers`` and ``search_text``.
    default_limit:
        Result cap when the caller passes none.
    max_limit:
        Upper bound applied to any caller-supplied limit.
    """

    def __init__(
        self,
        store: IArticleStore,
        *,
        default_limit: int = 50,
        max_limit: int = 200,
    ) -> None:
        self._store = store
        self._default_limit = default_limit
        self._max_limit = max_limit

    def _clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            limit = self._default_limit
        return max(1, min(int(limit), self._max_limit))

    async def search(self, query: str | None, limit: int | None = None) -> list[SearchHit]:
        """Return ranked hits for *query*; a blank query returns ``[]``."""
        text = (query or "").strip()
        if not text:
            return []

        limit = self._clamp_limit(limit)
        status = ArticleStatus.PUBLISHED

        id_matches = await self._store.match_identifiers(text, status=status, limit=limit)
        terms = _WORD.findall(text)
        text_matches = (
            await self._store.search_text(terms, status=status, limit=limit) if terms else []
        )

        hits: dict[str, SearchHit] = {}
        for article in id_matches:
            hits[article.identifier] = SearchHit(
                article=article, score=math.inf, matched_identifier=True
            )
        for article, score in text_matches:
            if article.identifier not in hits:
                hits[article.identifier] = SearchHit(article=article, score=score)

        ranked = sorted(hits.values(), key=_rank_key)[:limit]
        logger.info(
            "search_complete",
            query=text,
            identifier_matches=len(id_matches),
            text_matches=len(text_matches),
            returned=len(ranked),
        )
        return ranked


def _rank_key(hit: SearchHit) -> tuple:
    updated = hit.article.updated_at or _EPOCH
    return (
        0 if hit.matched_identifier else 1,
        -hit.score,
        -updated.timestamp(),
        hit.article.identifier,
    )
