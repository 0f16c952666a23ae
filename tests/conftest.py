"""Shared pytest fixtures for the knowledge hub test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from knowledge_hub.config.settings import Settings
from knowledge_hub.models.article import Article, ArticleStatus
from knowledge_hub.providers.converter.document_converter import DocumentConverter
from knowledge_hub.providers.store.sqlite_article_store import SQLiteArticleStore
from knowledge_hub.services.article_service import ArticleService
from knowledge_hub.services.identifier_allocator import IdentifierAllocator
from knowledge_hub.services.ingestion_service import IngestionService
from knowledge_hub.services.search_ranker import SearchRanker

# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

SOP_TEXT = """\
Service desk standard operating procedures
Revision 4

1. Task type: Reset a user password
Open the identity console.
Search for the user and choose Reset.

2. Task type: Unlock a locked account
Check the lockout source first.
Clear the lockout flag.

3. Task type: Provision a VPN token
Raise a hardware request.
"""


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sop_text() -> str:
    return SOP_TEXT


# ---------------------------------------------------------------------------
# Settings & store
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "kb.db"


@pytest.fixture
def test_settings(db_path: Path) -> Settings:
    """Settings pointing at a temporary database with auth disabled."""
    return Settings(db_path=str(db_path), auth_secret="", log_level="WARNING")


@pytest_asyncio.fixture
async def store(db_path: Path) -> SQLiteArticleStore:
    """An initialized SQLite article store backed by a temp file."""
    article_store = SQLiteArticleStore(db_path=db_path)
    await article_store.initialize()
    return article_store


@pytest.fixture
def allocator(store: SQLiteArticleStore) -> IdentifierAllocator:
    return IdentifierAllocator(store)


@pytest.fixture
def article_service(store: SQLiteArticleStore, allocator: IdentifierAllocator) -> ArticleService:
    return ArticleService(store, allocator)


@pytest.fixture
def ingestion_service(
    store: SQLiteArticleStore, allocator: IdentifierAllocator
) -> IngestionService:
    return IngestionService(store, allocator, DocumentConverter())


@pytest.fixture
def ranker(store: SQLiteArticleStore) -> SearchRanker:
    return SearchRanker(store, default_limit=50, max_limit=200)


def make_article(
    identifier: str,
    title: str = "Sample article",
    content: str = "Sample content",
    **overrides,
) -> Article:
    """Build an Article with sensible defaults for store tests."""
    fields = {
        "identifier": identifier,
        "title": title,
        "summary": overrides.pop("summary", content[:140]),
        "content": content,
        "tags": overrides.pop("tags", []),
        "status": overrides.pop("status", ArticleStatus.PUBLISHED),
    }
    fields.update(overrides)
    return Article(**fields)


@pytest.fixture
def article_factory():
    """Return :func:`make_article` so tests can build articles without importing conftest."""
    return make_article
