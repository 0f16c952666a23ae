"""Orchestrator for turning raw text and uploaded files into stored articles.

Pipeline stages: **convert -> split -> summarize -> allocate -> store**.

:class:`IngestionService` coordinates its collaborators without any of them
knowing about each other:

    1. IDocumentConverter -- file bytes to plain text or simple HTML (uploads)
    2. split_sections -- text to titled sections
    3. summarize -- one preview string per section
    4. IdentifierAllocator -- one atomic allocation per section, or one
       atomic block reservation when the caller picks the starting number
    5. IArticleStore.bulk_insert -- partial-failure mode, collisions reported

Allocation and insertion are not one transaction: an identifier allocated
for a section that then fails to insert is consumed, leaving a gap.  Gaps
are acceptable; reuse is not.
"""

from __future__ import annotations

from pathlib import PurePath

import structlog

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.interfaces.document_converter import IDocumentConverter
from knowledge_hub.models.article import (
    Article,
    ArticleSection,
    ArticleStatus,
    ImportResult,
    normalize_tags,
)
from knowledge_hub.services.article_service import parse_status
from knowledge_hub.services.identifier_allocator import IdentifierAllocator
from knowledge_hub.services.section_splitter import (
    DEFAULT_HEADING_TAG,
    DEFAULT_MARKER,
    SplitFormat,
    markup_to_text,
    split_sections,
)
from knowledge_hub.services.summary import DEFAULT_SUMMARY_BUDGET, summarize
from knowledge_hub.utils.errors import (
    ExtractionError,
    NoSectionsFoundError,
    UnsupportedFormatError,
    ValidationError,
)

logger = structlog.get_logger(logger_name=__name__)

UPLOAD_MODES = ("single", "split")


class IngestionService:
    """Orchestrates text imports and document uploads.

    Parameters
    ----------
    store:
        Article persistence.
    allocator:
        Identifier source for new sections.
    converter:
        Document-to-text converter used by :meth:`ingest_upload`.
    summary_budget:
        Character budget passed to :func:`summarize`.
    marker:
        Marker phrase for the MARKER split strategy.
    heading_tag:
        Heading tag for the MARKUP split strategy.
    default_split_format:
        Strategy used when the caller names none.
    import_tags / upload_tags:
        Tags attached when the caller supplies none.
    allowed_extensions:
        Upload extensions accepted before the converter is consulted.
    max_upload_bytes:
        Upload size ceiling.
    """

    def __init__(
        self,
        store: IArticleStore,
        allocator: IdentifierAllocator,
        converter: IDocumentConverter,
        *,
        summary_budget: int = DEFAULT_SUMMARY_BUDGET,
        marker: str = DEFAULT_MARKER,
        heading_tag: str = DEFAULT_HEADING_TAG,
        default_split_format: SplitFormat = SplitFormat.MARKER,
        import_tags: list[str] | None = None,
        upload_tags: list[str] | None = None,
        allowed_extensions: list[str] | None = None,
        max_upload_bytes: int = 20 * 1024 * 1024,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._converter = converter
        self._summary_budget = summary_budget
        self._marker = marker
        self._heading_tag = heading_tag
        self._default_split_format = SplitFormat.parse(default_split_format)
        self._import_tags = normalize_tags(import_tags if import_tags is not None else ["bulk"])
        self._upload_tags = normalize_tags(upload_tags if upload_tags is not None else ["upload"])
        self._allowed_extensions = (
            frozenset(e.lower() for e in allowed_extensions)
            if allowed_extensions is not None
            else converter.supported_extensions()
        )
        self._max_upload_bytes = max_upload_bytes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def import_text(
        self,
        text: str | None,
        *,
        prefix: str | None = None,
        start_number: int | None = None,
        tags: list[str] | None = None,
        split_format: SplitFormat | str | None = None,
        category: str | None = None,
        status: ArticleStatus | str | None = None,
    ) -> ImportResult:
        """Split *text* into sections and store one article per section.

        Raises
        ------
        ValidationError
            If *text* is blank or an option is invalid.
        NoSectionsFoundError
            If the chosen strategy finds no section boundary.
        """
        if not text or not text.strip():
            raise ValidationError("No text provided")

        fmt = SplitFormat.parse(split_format, self._default_split_format)
        sections = self._split(text, fmt)
        if not sections:
            raise NoSectionsFoundError(
                f"No sections found using the '{fmt.value}' split format"
            )

        result = await self._store_sections(
            sections,
            tags=self._import_tags if tags is None else normalize_tags(tags),
            prefix=prefix,
            start_number=start_number,
            category=category,
            status=parse_status(status),
        )
        logger.info(
            "text_import_complete",
            split_format=fmt.value,
            sections=len(sections),
            created=result.created,
            duplicates=len(result.duplicates),
            first=result.first_identifier,
            last=result.last_identifier,
        )
        return result

    async def ingest_upload(
        self,
        data: bytes | None,
        filename: str | None,
        *,
        mode: str = "split",
        tags: list[str] | None = None,
        split_format: SplitFormat | str | None = None,
        category: str | None = None,
    ) -> ImportResult:
        """Convert an uploaded document and store it as one or many articles.

        ``mode="single"`` stores the whole document as one article titled by
        the filename; ``mode="split"`` runs the section splitter (markup
        documents always use the MARKUP strategy).

        Raises
        ------
        ValidationError
            If no file was sent, it is too large, or *mode* is unknown.
        UnsupportedFormatError
            If the file extension is not accepted.
        ExtractionError
            If the converter fails or the document holds no text.
        NoSectionsFoundError
            If split mode finds no section boundary.
        """
        if not data:
            raise ValidationError("No file")
        if len(data) > self._max_upload_bytes:
            raise ValidationError(
                f"File exceeds the {self._max_upload_bytes} byte upload limit"
            )
        mode = (mode or "split").strip().lower()
        if mode not in UPLOAD_MODES:
            raise ValidationError(f"Unknown upload mode '{mode}' (expected single or split)")

        name = PurePath(filename or "upload").name
        extension = PurePath(name).suffix.lower()
        if extension not in self._allowed_extensions:
            raise UnsupportedFormatError(f"Unsupported document format: {extension or '(none)'}")

        document = await self._converter.convert(data, extension)
        if not document.text.strip():
            raise ExtractionError("No text extracted")

        upload_tags = self._upload_tags if tags is None else normalize_tags(tags)

        if mode == "single":
            content = markup_to_text(document.text) if document.is_markup else document.text.strip()
            if not content:
                raise ExtractionError("No text extracted")
            sections = [ArticleSection(title=name, content=content)]
        else:
            fmt = SplitFormat.for_document(
                document, SplitFormat.parse(split_format, self._default_split_format)
            )
            sections = self._split(document.text, fmt)
            if not sections:
                raise NoSectionsFoundError(
                    f"No sections found in {name} using the '{fmt.value}' split format"
                )

        result = await self._store_sections(
            sections,
            tags=upload_tags,
            category=category,
            status=ArticleStatus.PUBLISHED,
        )
        logger.info(
            "upload_ingested",
            filename=name,
            mode=mode,
            is_markup=document.is_markup,
            created=result.created,
            duplicates=len(result.duplicates),
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _split(self, text: str, fmt: SplitFormat) -> list[ArticleSection]:
        return split_sections(text, fmt, marker=self._marker, heading_tag=self._heading_tag)

    async def _store_sections(
        self,
        sections: list[ArticleSection],
        *,
        tags: list[str],
        prefix: str | None = None,
        start_number: int | None = None,
        category: str | None = None,
        status: ArticleStatus = ArticleStatus.PUBLISHED,
    ) -> ImportResult:
        """Allocate identifiers for *sections* and bulk-insert them."""
        if start_number is not None:
            block = await self._allocator.reserve_block(
                len(sections), prefix=prefix, start_number=start_number
            )
            identifiers = block.identifiers()
        else:
            identifiers = await self._allocator.allocate_many(len(sections), prefix=prefix)

        articles = [
            Article(
                identifier=identifier,
                title=section.title,
                summary=summarize(section.content, self._summary_budget),
                content=section.content,
                tags=tags,
                status=status,
                category=category or "",
            )
            for identifier, section in zip(identifiers, sections)
        ]

        outcome = await self._store.bulk_insert(articles, allow_partial_failure=True)
        return ImportResult(
            created=outcome.inserted_count,
            identifiers=outcome.inserted,
            duplicates=outcome.duplicates,
        )

