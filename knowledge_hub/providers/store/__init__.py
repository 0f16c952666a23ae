"""Article persistence providers.

SQLiteArticleStore keeps articles, identifier counters and an FTS5 index in
data/knowledge_hub.db.
"""

from knowledge_hub.providers.store.sqlite_article_store import SQLiteArticleStore

__all__ = ["SQLiteArticleStore"]
