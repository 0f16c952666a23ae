"""SQLite-backed article store.

Persists articles, identifier counters and a full-text index to a local
SQLite database at ``data/knowledge_hub.db``.  Uses ``aiosqlite`` for async
I/O with one connection per operation and WAL journaling.

Schema overview::

    articles      -- one row per article, ``identifier`` UNIQUE
    articles_fts  -- FTS5 external-content index over title/summary/content/tags,
                     kept in sync by triggers on ``articles``
    counters      -- (name, value) cells for identifier allocation

Counter increments are a single ``INSERT ... ON CONFLICT DO UPDATE ...
RETURNING`` statement, so the read and the write cannot be separated by
another writer.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.models.article import Article, ArticleStatus, BulkInsertResult
from knowledge_hub.utils.errors import DuplicateIdentifierError, StoreUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge_hub.db")

_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS articles (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    identifier  TEXT    NOT NULL UNIQUE,
    title       TEXT    NOT NULL,
    summary     TEXT    NOT NULL DEFAULT '',
    content     TEXT    NOT NULL DEFAULT '',
    tags        TEXT    NOT NULL DEFAULT '[]',
    status      TEXT    NOT NULL DEFAULT 'published',
    category    TEXT    NOT NULL DEFAULT 'General',
    created_at  TEXT    NOT NULL DEFAULT ({_NOW}),
    updated_at  TEXT    NOT NULL DEFAULT ({_NOW})
);
""",
    """\
CREATE TABLE IF NOT EXISTS counters (
    name   TEXT    PRIMARY KEY,
    value  INTEGER NOT NULL
);
""",
    """\
CREATE VIRTUAL TABLE IF NOT EXISTS articles_fts USING fts5(
    title, summary, content, tags,
    content='articles', content_rowid='id'
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_articles_status ON articles(status);",
    "CREATE INDEX IF NOT EXISTS idx_articles_updated ON articles(updated_at);",
]

_CREATE_TRIGGERS_SQL = [
    """\
CREATE TRIGGER IF NOT EXISTS articles_ai AFTER INSERT ON articles BEGIN
    INSERT INTO articles_fts(rowid, title, summary, content, tags)
    VALUES (new.id, new.title, new.summary, new.content, new.tags);
END;
""",
    """\
CREATE TRIGGER IF NOT EXISTS articles_ad AFTER DELETE ON articles BEGIN
    INSERT INTO articles_fts(articles_fts, rowid, title, summary, content, tags)
    VALUES ('delete', old.id, old.title, old.summary, old.content, old.tags);
END;
""",
    """\
CREATE TRIGGER IF NOT EXISTS articles_au AFTER UPDATE ON articles BEGIN
    INSERT INTO articles_fts(articles_fts, rowid, title, summary, content, tags)
    VALUES ('delete', old.id, old.title, old.summary, old.content, old.tags);
    INSERT INTO articles_fts(rowid, title, summary, content, tags)
    VALUES (new.id, new.title, new.summary, new.content, new.tags);
END;
""",
]

_COLUMNS = "identifier, title, summary, content, tags, status, category, created_at, updated_at"

_INSERT_SQL = """\
INSERT INTO articles (identifier, title, summary, content, tags, status, category)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_INCREMENT_COUNTER_SQL = """\
INSERT INTO counters (name, value) VALUES (?, ?)
ON CONFLICT(name) DO UPDATE SET value = MAX(counters.value, ?) + ?
RETURNING value;
"""

# Columns an update may touch.  identifier and the timestamps are store-managed.
_UPDATABLE_FIELDS = ("title", "summary", "content", "tags", "status", "category")


class SQLiteArticleStore(IArticleStore):
    """SQLite-backed article persistence with FTS5 search."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, mapping operational failures to StoreUnavailableError."""
        try:
            async with aiosqlite.connect(str(self._db_path), timeout=self._timeout) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except sqlite3.OperationalError as exc:
            logger.error("article_store_unavailable", path=str(self._db_path), error=str(exc))
            raise StoreUnavailableError(
                f"Article store unavailable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create tables, the FTS index and its sync triggers if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            for sql in _CREATE_TABLES_SQL + _CREATE_INDICES_SQL + _CREATE_TRIGGERS_SQL:
                await db.execute(sql)
            await db.commit()
        logger.info("article_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite_article_store"

    # ------------------------------------------------------------------
    # Article CRUD
    # ------------------------------------------------------------------

    async def create(self, article: Article) -> Article:
        async with self._connect() as db:
            try:
                await db.execute(_INSERT_SQL, _insert_params(article))
            except sqlite3.IntegrityError:
                raise DuplicateIdentifierError(
                    article.identifier, provider_name=self.get_provider_name()
                ) from None
            await db.commit()
            stored = await self._select_one(db, article.identifier)

        logger.info("article_created", identifier=article.identifier)
        return stored  # type: ignore[return-value]

    async def update(self, identifier: str, fields: dict[str, Any]) -> Article | None:
        async with self._connect() as db:
            current = await self._select_one(db, identifier)
            if current is None:
                return None

            changes = {k: v for k, v in fields.items() if k in _UPDATABLE_FIELDS}
            ignored = sorted(set(fields) - set(changes))
            if ignored:
                logger.debug("article_update_fields_ignored", identifier=identifier, fields=ignored)

            # Round-trip through the model so tags/category/status get normalized.
            merged = Article.model_validate({**current.model_dump(), **changes})
            await db.execute(
                "UPDATE articles SET title = ?, summary = ?, content = ?, tags = ?, "
                f"status = ?, category = ?, updated_at = {_NOW} WHERE identifier = ?",
                (
                    merged.title,
                    merged.summary,
                    merged.content,
                    json.dumps(merged.tags),
                    merged.status.value,
                    merged.category,
                    identifier,
                ),
            )
            await db.commit()
            stored = await self._select_one(db, identifier)

        logger.info("article_updated", identifier=identifier, fields=sorted(changes))
        return stored

    async def delete(self, identifier: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM articles WHERE identifier = ?", (identifier,))
            await db.commit()
            removed = cursor.rowcount > 0

        if removed:
            logger.info("article_deleted", identifier=identifier)
        return removed

    async def find_by_identifier(self, identifier: str) -> Article | None:
        async with self._connect() as db:
            return await self._select_one(db, identifier)

    async def find_all(self, *, sort_by_identifier: bool = True) -> list[Article]:
        order = "identifier ASC" if sort_by_identifier else "created_at DESC, identifier DESC"
        async with self._connect() as db:
            cursor = await db.execute(f"SELECT {_COLUMNS} FROM articles ORDER BY {order}")
            rows = await cursor.fetchall()
        return [_row_to_article(r) for r in rows]

    async def bulk_insert(
        self,
        articles: list[Article],
        *,
        allow_partial_failure: bool = True,
    ) -> BulkInsertResult:
        inserted: list[str] = []
        duplicates: list[str] = []

        async with self._connect() as db:
            for article in articles:
                try:
                    await db.execute(_INSERT_SQL, _insert_params(article))
                except sqlite3.IntegrityError:
                    if not allow_partial_failure:
                        await db.rollback()
                        logger.warning(
                            "bulk_insert_rolled_back",
                            identifier=article.identifier,
                            attempted=len(articles),
                        )
                        raise DuplicateIdentifierError(
                            article.identifier, provider_name=self.get_provider_name()
                        ) from None
                    duplicates.append(article.identifier)
                else:
                    inserted.append(article.identifier)
            await db.commit()

        logger.info(
            "bulk_insert_complete",
            inserted=len(inserted),
            duplicates=len(duplicates),
        )
        return BulkInsertResult(inserted=inserted, duplicates=duplicates)

    # ------------------------------------------------------------------
    # Counter cells
    # ------------------------------------------------------------------

    async def increment_counter(
        self,
        name: str,
        *,
        step: int = 1,
        floor: int = 0,
        initial: int = 1000,
    ) -> int:
        first_value = max(initial, floor) + step
        async with self._connect() as db:
            cursor = await db.execute(_INCREMENT_COUNTER_SQL, (name, first_value, floor, step))
            rows = await cursor.fetchall()
            await cursor.close()
            await db.commit()

        value = int(rows[0][0])
        logger.debug("counter_incremented", counter=name, value=value, step=step)
        return value

    # ------------------------------------------------------------------
    # Search primitives
    # ------------------------------------------------------------------

    async def search_text(
        self,
        terms: list[str],
        *,
        status: ArticleStatus | None = ArticleStatus.PUBLISHED,
        limit: int = 50,
    ) -> list[tuple[Article, float]]:
        match_query = _build_match_query(terms)
        if not match_query:
            return []

        sql = (
            "SELECT a.identifier, a.title, a.summary, a.content, a.tags, a.status, "
            "a.category, a.created_at, a.updated_at, -bm25(articles_fts) AS score "
            "FROM articles_fts JOIN articles a ON a.id = articles_fts.rowid "
            "WHERE articles_fts MATCH ?"
        )
        params: list[Any] = [match_query]
        if status is not None:
            sql += " AND a.status = ?"
            params.append(status.value)
        sql += " ORDER BY score DESC, a.updated_at DESC, a.identifier ASC LIMIT ?"
        params.append(limit)

        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [(_row_to_article(r), float(r["score"])) for r in rows]

    async def match_identifiers(
        self,
        fragment: str,
        *,
        status: ArticleStatus | None = ArticleStatus.PUBLISHED,
        limit: int = 50,
    ) -> list[Article]:
        fragment = fragment.strip()
        if not fragment:
            return []

        sql = f"SELECT {_COLUMNS} FROM articles WHERE identifier LIKE ? ESCAPE '\\'"
        params: list[Any] = [f"%{_escape_like(fragment)}%"]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        # Same order the ranker uses inside the identifier tier, so LIMIT keeps its top rows.
        sql += " ORDER BY updated_at DESC, identifier ASC LIMIT ?"
        params.append(limit)

        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [_row_to_article(r) for r in rows]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_stats(self) -> dict[str, Any]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT status, COUNT(*) AS total FROM articles GROUP BY status"
            )
            status_rows = await cursor.fetchall()
            cursor = await db.execute(
                "SELECT category, COUNT(*) AS total FROM articles "
                "GROUP BY category ORDER BY total DESC, category ASC"
            )
            category_rows = await cursor.fetchall()
            cursor = await db.execute("SELECT name, value FROM counters ORDER BY name")
            counter_rows = await cursor.fetchall()

        by_status = {r["status"]: r["total"] for r in status_rows}
        return {
            "total_articles": sum(by_status.values()),
            "by_status": by_status,
            "by_category": {r["category"]: r["total"] for r in category_rows},
            "counters": {r["name"]: r["value"] for r in counter_rows},
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _select_one(self, db: aiosqlite.Connection, identifier: str) -> Article | None:
        cursor = await db.execute(
            f"SELECT {_COLUMNS} FROM articles WHERE identifier = ?", (identifier,)
        )
        row = await cursor.fetchone()
        return _row_to_article(row) if row else None


def _insert_params(article: Article) -> tuple[Any, ...]:
    return (
        article.identifier,
        article.title,
        article.summary,
        article.content,
        json.dumps(article.tags),
        article.status.value,
        article.category,
    )


def _row_to_article(row: aiosqlite.Row) -> Article:
    return Article(
        identifier=row["identifier"],
        title=row["title"],
        summary=row["summary"],
        content=row["content"],
        tags=json.loads(row["tags"] or "[]"),
        status=ArticleStatus(row["status"]),
        category=row["category"],
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _build_match_query(terms: list[str]) -> str:
    """Quote each term for FTS5 and join with OR.

    Embedded double quotes are doubled so user input can never reach the
    FTS5 query syntax.
    """
    quoted = ['"' + t.replace('"', '""') + '"' for t in terms if t and t.strip()]
    return " OR ".join(quoted)


def _escape_like(fragment: str) -> str:
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
