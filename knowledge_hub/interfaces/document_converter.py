"""Abstract base class for document-to-text converters.

The ingestion pipeline treats conversion as a black box: file bytes plus a
declared extension go in, plain text or simple HTML comes out.  The concrete
implementation is DocumentConverter
(knowledge_hub/providers/converter/document_converter.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from knowledge_hub.models.article import ExtractedDocument


class IDocumentConverter(ABC):
    """Contract for turning uploaded document bytes into text."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this converter."""

    @abstractmethod
    def supported_extensions(self) -> frozenset[str]:
        """Lower-case extensions including the dot, e.g. ``{".pdf", ".docx"}``."""

    @abstractmethod
    async def convert(self, data: bytes, extension: str) -> ExtractedDocument:
        """Extract text from *data*.

        Raises
        ------
        UnsupportedFormatError
            If *extension* is not handled.
        ExtractionError
            If the bytes cannot be parsed.
        """
