"""Short preview strings for article bodies.

``summarize`` is pure and idempotent: a string already within the budget is
returned unchanged, and a truncated summary re-truncates to itself because
its first ``budget`` characters are the same.
"""

from __future__ import annotations

import re

DEFAULT_SUMMARY_BUDGET = 140
ELLIPSIS = "..."

_WHITESPACE_RUN = re.compile(r"\s+")


def summarize(content: str | None, budget: int = DEFAULT_SUMMARY_BUDGET) -> str:
    """Collapse whitespace and truncate *content* to *budget* characters.

    Parameters
    ----------
    content:
        Article body text.  ``None`` is treated as empty.
    budget:
        Maximum number of characters kept before the ``"..."`` marker.

    Returns
    -------
    str
        The collapsed text, or its first *budget* characters followed by
        ``"..."`` when longer.  Never longer than ``budget + 3``.
    """
    if budget < 1:
        raise ValueError("summary budget must be positive")

    text = _WHITESPACE_RUN.sub(" ", content or "").strip()
    if len(text) > budget:
        return text[:budget] + ELLIPSIS
    return text
