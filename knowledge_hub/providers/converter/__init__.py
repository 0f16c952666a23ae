"""Document-to-text converters (DOCX, PDF, plain text, HTML)."""

from knowledge_hub.providers.converter.document_converter import DocumentConverter

__all__ = ["DocumentConverter"]
