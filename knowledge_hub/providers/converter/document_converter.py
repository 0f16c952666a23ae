"""Document-to-text conversion for uploaded files.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# DocumentConverter turns the raw bytes of an upload into text the
# section splitter understands.  Everything is read from in-memory
# buffers, so a failed conversion leaves nothing behind on disk.
#
# Conversion strategy per format:
#   DOCX       → simple HTML via python-docx (Heading styles → <h2>,
#                other paragraphs → <p>); is_markup = True
#   PDF        → plain text via PyMuPDF (fitz), page by page
#   TXT / MD   → decoded UTF-8 plain text
#   HTML / HTM → passed through as markup; is_markup = True
#
# Pattern: Strategy (extension → converter function dispatch).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import html
import io

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx import Document

from knowledge_hub.interfaces.document_converter import IDocumentConverter
from knowledge_hub.models.article import ExtractedDocument
from knowledge_hub.utils.errors import ExtractionError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

_HEADING_TAG = "h2"


class DocumentConverter(IDocumentConverter):
    """Converts DOCX, PDF, plain-text and HTML uploads to text.

    Parsing runs in a worker thread so large documents don't block the
    event loop.
    """

    def __init__(self, heading_tag: str = _HEADING_TAG) -> None:
        self._heading_tag = heading_tag
        self._converters = {
            ".docx": self._convert_docx,
            ".pdf": self._convert_pdf,
            ".txt": self._convert_plain,
            ".md": self._convert_plain,
            ".html": self._convert_html,
            ".htm": self._convert_html,
        }

    def get_provider_name(self) -> str:
        return "document_converter"

    def supported_extensions(self) -> frozenset[str]:
        return frozenset(self._converters)

    async def convert(self, data: bytes, extension: str) -> ExtractedDocument:
        """Convert *data* according to *extension*.

        Parameters
        ----------
        data:
            Raw file contents.
        extension:
            File extension including the dot, any case (e.g. ``".DOCX"``).

        Raises
        ------
        UnsupportedFormatError
            If no converter handles *extension*.
        ExtractionError
            If the file cannot be parsed.
        """
        suffix = extension.lower()
        converter = self._converters.get(suffix)
        if converter is None:
            raise UnsupportedFormatError(
                f"Unsupported document format: {extension or '(none)'}",
                provider_name=self.get_provider_name(),
            )

        try:
            text, is_markup = await asyncio.to_thread(converter, data)
        except ExtractionError:
            raise
        except Exception as exc:
            logger.warning("document_conversion_failed", extension=suffix, error=str(exc))
            raise ExtractionError(
                f"Could not read {suffix} document: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("document_converted", extension=suffix, chars=len(text), is_markup=is_markup)
        return ExtractedDocument(text=text, extension=suffix, is_markup=is_markup)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _convert_docx(self, data: bytes) -> tuple[str, bool]:
        """DOCX → simple HTML, keeping headings so the markup splitter can use them."""
        doc = Document(io.BytesIO(data))
        blocks: list[str] = []
        for para in doc.paragraphs:
            text = para.text.strip()
            if not text:
                continue
            style_name = para.style.name if para.style is not None else ""
            tag = self._heading_tag if style_name.startswith("Heading") else "p"
            blocks.append(f"<{tag}>{html.escape(text)}</{tag}>")
        return "\n".join(blocks), True

    @staticmethod
    def _convert_pdf(data: bytes) -> tuple[str, bool]:
        """PDF → plain text, pages joined by a blank line."""
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages = [page.get_text("text").strip() for page in doc]
        finally:
            doc.close()
        return "\n\n".join(p for p in pages if p), False

    @staticmethod
    def _convert_plain(data: bytes) -> tuple[str, bool]:
        return data.decode("utf-8", errors="replace"), False

    @staticmethod
    def _convert_html(data: bytes) -> tuple[str, bool]:
        return data.decode("utf-8", errors="replace"), True
