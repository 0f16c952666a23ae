"""Partition long documents into candidate article sections.

One entry point, :func:`split_sections`, dispatches on an explicit
:class:`SplitFormat` tag to one of three heading-detection strategies:

1. **marker** -- a line such as ``"3. Task type: Reset a password"`` starts a
   section.  The text after the colon is the title; the following lines up
   to the next marker are the content.
2. **heading** -- numbered lines (``1.``, ``2)``, ``3-``) or markdown
   headings (``##`` and deeper) followed by whitespace start a section;
   blank lines are ignored.
3. **markup** -- converted rich text is split on a block heading tag
   (``<h2>`` by default); markup is stripped from titles and content.

Shared rules: text before the first boundary is preamble and is never
emitted; a section whose content trims to nothing is still emitted with
``""``; a title that trims to nothing becomes ``"Untitled"``.  An empty
result is returned as ``[]`` and left to the caller to report.
"""

from __future__ import annotations

import re
from enum import Enum

import structlog
from bs4 import BeautifulSoup

from knowledge_hub.models.article import UNTITLED, ArticleSection, ExtractedDocument
from knowledge_hub.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MARKER = "Task type"
DEFAULT_HEADING_TAG = "h2"

# Numeric prefix ("1.", "2)", "3-") or a markdown "##" run, then whitespace.
# "1.5 litres", "2024-01-31", "1.First" and "3-day rollout" stay content.
_HEADING_LINE = re.compile(r"^\s*(?:\d+[.)\-]|#{2,})\s+(?P<title>\S.*)$")
_TAG_NAME = re.compile(r"^[a-zA-Z][a-zA-Z0-9]*$")
_SPACE_RUN = re.compile(r"\s+")
_BLOCK_TAGS = ["p", "div", "li", "tr", "pre", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


class SplitFormat(str, Enum):
    """Which heading-detection strategy to apply."""

    MARKER = "marker"
    HEADING = "heading"
    MARKUP = "markup"

    @classmethod
    def parse(cls, value: str | SplitFormat | None, default: SplitFormat | None = None) -> SplitFormat:
        """Coerce a request value into a SplitFormat.

        Raises ValidationError for unknown names; ``None``/``""`` fall back to
        *default* (or MARKER).
        """
        if isinstance(value, cls):
            return value
        if not value:
            return default or cls.MARKER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(f.value for f in cls)
            raise ValidationError(f"Unknown split format '{value}' (expected one of: {allowed})") from None

    @classmethod
    def for_document(cls, document: ExtractedDocument, default: SplitFormat) -> SplitFormat:
        """Pick MARKUP for converted rich text, otherwise *default*."""
        return cls.MARKUP if document.is_markup else default


def split_sections(
    text: str,
    split_format: SplitFormat = SplitFormat.MARKER,
    *,
    marker: str = DEFAULT_MARKER,
    heading_tag: str = DEFAULT_HEADING_TAG,
) -> list[ArticleSection]:
    """Split *text* into sections using the strategy named by *split_format*.

    Parameters
    ----------
    text:
        Plain text (marker/heading) or simple HTML (markup).
    split_format:
        Strategy tag.
    marker:
        Literal marker phrase for the marker strategy, matched
        case-insensitively and followed by a colon.
    heading_tag:
        Block-level tag name for the markup strategy.

    Returns
    -------
    list[ArticleSection]
        Sections in document order.  Empty when no boundary was found.
    """
    if not text:
        return []

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    if split_format == SplitFormat.MARKER:
        sections = _split_by_marker(text, marker)
    elif split_format == SplitFormat.HEADING:
        sections = _split_by_heading(text)
    elif split_format == SplitFormat.MARKUP:
        sections = _split_by_markup(text, heading_tag)
    else:
        raise ValidationError(f"Unknown split format '{split_format}'")

    logger.debug(
        "sections_split",
        split_format=split_format.value,
        sections=len(sections),
        chars=len(text),
    )
    return sections


# ------------------------------------------------------------------
# Strategies
# ------------------------------------------------------------------


def _split_by_marker(text: str, marker: str) -> list[ArticleSection]:
    phrase = marker.strip()
    if not phrase:
        raise ValidationError("Marker phrase must not be empty")

    pattern = re.compile(
        rf"(?:^|\n)[ \t]*(?:\d+[.)][ \t]*)?{re.escape(phrase)}[ \t]*:[ \t]*",
        re.IGNORECASE,
    )
    parts = pattern.split(text)

    sections: list[ArticleSection] = []
    # parts[0] is the preamble before the first marker.
    for part in parts[1:]:
        title_line, _, remainder = part.partition("\n")
        sections.append(_make_section(title_line, remainder))
    return sections


def _split_by_heading(text: str) -> list[ArticleSection]:
    lines = [line for line in text.split("\n") if line.strip()]

    sections: list[ArticleSection] = []
    current_title: str | None = None
    current_lines: list[str] = []

    for line in lines:
        match = _HEADING_LINE.match(line)
        if match:
            if current_title is not None:
                sections.append(_make_section(current_title, "\n".join(current_lines)))
            current_title = match.group("title")
            current_lines = []
        elif current_title is not None:
            current_lines.append(line.strip())

    if current_title is not None:
        sections.append(_make_section(current_title, "\n".join(current_lines)))
    return sections


def _split_by_markup(markup: str, heading_tag: str) -> list[ArticleSection]:
    if not _TAG_NAME.match(heading_tag):
        raise ValidationError(f"Invalid heading tag '{heading_tag}'")

    pattern = re.compile(
        rf"<{heading_tag}\b[^>]*>(?P<title>.*?)</{heading_tag}\s*>",
        re.IGNORECASE | re.DOTALL,
    )
    matches = list(pattern.finditer(markup))

    sections: list[ArticleSection] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(markup)
        title = _SPACE_RUN.sub(" ", markup_to_text(match.group("title")))
        content = markup_to_text(markup[match.end():end])
        sections.append(_make_section(title, content))
    return sections


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def markup_to_text(fragment: str) -> str:
    """Return the text of an HTML fragment, one non-empty line per block."""
    if not fragment.strip():
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")
    raw = soup.get_text()
    lines = (line.strip() for line in raw.split("\n"))
    return "\n".join(line for line in lines if line)


def _make_section(title: str, content: str) -> ArticleSection:
    return ArticleSection(
        title=title.strip() or UNTITLED,
        content=content.strip(),
    )
