"""Abstract provider interfaces (ports) for the knowledge hub."""

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.interfaces.document_converter import IDocumentConverter
from knowledge_hub.interfaces.identity_provider import IIdentityProvider

__all__ = ["IArticleStore", "IDocumentConverter", "IIdentityProvider"]
