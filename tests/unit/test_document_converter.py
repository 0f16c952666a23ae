"""Unit tests for the document converter.

DOCX and PDF fixtures are built in memory with python-docx and PyMuPDF.
"""

from __future__ import annotations

import io

import fitz
import pytest
from docx import Document

from knowledge_hub.providers.converter.document_converter import DocumentConverter
from knowledge_hub.utils.errors import ExtractionError, UnsupportedFormatError


def _docx_bytes() -> bytes:
    doc = Document()
    doc.add_paragraph("Cover note")
    doc.add_heading("Reset password", level=1)
    doc.add_paragraph("Open the console & search.")
    doc.add_paragraph("")
    doc.add_heading("Unlock account", level=2)
    doc.add_paragraph("Clear the flag.")
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def converter() -> DocumentConverter:
    return DocumentConverter()


class TestDocx:
    async def test_headings_become_markup(self, converter) -> None:
        document = await converter.convert(_docx_bytes(), ".docx")

        assert document.is_markup is True
        assert document.extension == ".docx"
        assert document.text.splitlines() == [
            "<p>Cover note</p>",
            "<h2>Reset password</h2>",
            "<p>Open the console &amp; search.</p>",
            "<h2>Unlock account</h2>",
            "<p>Clear the flag.</p>",
        ]

    async def test_custom_heading_tag(self) -> None:
        document = await DocumentConverter(heading_tag="h3").convert(_docx_bytes(), ".DOCX")
        assert "<h3>Reset password</h3>" in document.text

    async def test_corrupt_docx(self, converter) -> None:
        with pytest.raises(ExtractionError):
            await converter.convert(b"not a zip archive", ".docx")


class TestPdf:
    async def test_pages_joined(self, converter) -> None:
        document = await converter.convert(_pdf_bytes("First page", "Second page"), ".pdf")

        assert document.is_markup is False
        assert "First page" in document.text
        assert "Second page" in document.text
        assert document.text.index("First page") < document.text.index("Second page")


class TestPlainAndHtml:
    async def test_plain_text(self, converter) -> None:
        document = await converter.convert("Task type: Café\nbody".encode(), ".txt")
        assert document.text == "Task type: Café\nbody"
        assert document.is_markup is False

    async def test_invalid_utf8_is_replaced(self, converter) -> None:
        document = await converter.convert(b"abc\xff", ".md")
        assert document.text == "abc�"

    async def test_html_passthrough(self, converter) -> None:
        document = await converter.convert(b"<h2>A</h2><p>b</p>", ".htm")
        assert document.is_markup is True
        assert document.text == "<h2>A</h2><p>b</p>"


class TestDispatch:
    async def test_unsupported_extension(self, converter) -> None:
        with pytest.raises(UnsupportedFormatError):
            await converter.convert(b"data", ".xlsx")

    def test_supported_extensions(self, converter) -> None:
        assert converter.supported_extensions() == {
            ".docx", ".pdf", ".txt", ".md", ".html", ".htm",
        }
        assert converter.get_provider_name() == "document_converter"
