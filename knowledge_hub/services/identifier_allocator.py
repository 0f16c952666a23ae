"""Unique, monotonically increasing article identifiers.

Every identifier is minted from a named counter cell owned by the article
store, advanced with one atomic increment-and-fetch.  The allocator never
reads a counter and writes it back in two steps, never caches counter
values between calls, and never scans existing articles for a maximum.

Two allocation paths:

- :meth:`IdentifierAllocator.allocate` -- one counter increment per
  identifier.  Safe to call concurrently; each caller observes a distinct
  value.
- :meth:`IdentifierAllocator.reserve_block` -- for imports that ask for a
  starting number.  One atomic increment of ``count`` moves the prefix's
  counter past ``max(current, start - 1)``; the batch then walks a local
  :class:`IdentifierBlock` cursor.  The cursor lives inside one batch and is
  never shared, so two batches with the same start get disjoint ranges.
"""

from __future__ import annotations

import asyncio
import re

import structlog

from knowledge_hub.interfaces.article_store import IArticleStore
from knowledge_hub.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_PAD_WIDTH = 6
DEFAULT_INITIAL_VALUE = 1000

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9]*-\d+$")


def format_identifier(prefix: str, value: int, pad_width: int = DEFAULT_PAD_WIDTH) -> str:
    """Render ``<PREFIX>-<value zero-padded to pad_width>``.

    A trailing ``-`` on *prefix* is tolerated, so ``"KB"`` and ``"KB-"``
    both give ``KB-001001`` for 1001.
    """
    clean_prefix = normalize_prefix(prefix)
    if not clean_prefix:
        raise ValidationError("Identifier prefix must not be empty")
    return f"{clean_prefix}-{str(value).zfill(pad_width)}"


def normalize_prefix(prefix: str) -> str:
    """Strip whitespace and a trailing ``-``; ``" KB-"`` and ``"KB"`` are the same prefix."""
    return prefix.strip().rstrip("-")


def counter_name_for_prefix(prefix: str) -> str:
    """Counter cell shared by every allocation for *prefix* (``KB`` -> ``kb``)."""
    return normalize_prefix(prefix).lower()


def is_valid_identifier(identifier: str) -> bool:
    """True for ``<PREFIX>-<digits>`` where the prefix starts with a letter."""
    return bool(_IDENTIFIER.match(identifier))


class IdentifierBlock:
    """A contiguous range of counter values reserved for one import batch."""

    def __init__(self, prefix: str, first_value: int, count: int, pad_width: int) -> None:
        self._prefix = prefix
        self._first_value = first_value
        self._count = count
        self._pad_width = pad_width
        self._cursor = 0

    @property
    def first_value(self) -> int:
        return self._first_value

    @property
    def last_value(self) -> int:
        return self._first_value + self._count - 1

    @property
    def remaining(self) -> int:
        return self._count - self._cursor

    def next_identifier(self) -> str:
        """Return the next identifier in the block.

        Raises IndexError once every reserved value has been handed out.
        """
        if self._cursor >= self._count:
            raise IndexError("identifier block exhausted")
        value = self._first_value + self._cursor
        self._cursor += 1
        return format_identifier(self._prefix, value, self._pad_width)

    def identifiers(self) -> list[str]:
        """Drain the remaining identifiers in ascending order."""
        return [self.next_identifier() for _ in range(self.remaining)]


class IdentifierAllocator:
    """Mints article identifiers through the store's atomic counter.

    Parameters
    ----------
    store:
        Article store providing ``increment_counter``.
    counter_name:
        Default counter cell (``"kb"``).
    prefix:
        Default identifier prefix (``"KB"``).
    pad_width:
        Zero-padding width of the numeric part.
    initial_value:
        Counter value a brand-new counter starts from; the first
        identifier is ``initial_value + 1``.
    """

    def __init__(
        self,
        store: IArticleStore,
        *,
        counter_name: str = "kb",
        prefix: str = "KB",
        pad_width: int = DEFAULT_PAD_WIDTH,
        initial_value: int = DEFAULT_INITIAL_VALUE,
    ) -> None:
        self._store = store
        self._counter_name = counter_name
        self._prefix = prefix
        self._pad_width = pad_width
        self._initial_value = initial_value

    def _counter_for(self, prefix: str) -> str:
        """Map *prefix* to its counter cell.

        Every spelling of the default prefix (``"KB"``, ``"KB-"``, ``" KB"``)
        shares the configured counter; any other prefix gets its own.
        """
        if normalize_prefix(prefix) == normalize_prefix(self._prefix):
            return self._counter_name
        return counter_name_for_prefix(prefix)

    async def allocate(
        self,
        counter_name: str | None = None,
        prefix: str | None = None,
        pad_width: int | None = None,
    ) -> str:
        """Allocate one identifier with a single atomic counter increment."""
        prefix = prefix or self._prefix
        name = counter_name or self._counter_for(prefix)
        value = await self._store.increment_counter(name, initial=self._initial_value)
        return format_identifier(prefix, value, pad_width or self._pad_width)

    async def allocate_many(
        self,
        count: int,
        *,
        counter_name: str | None = None,
        prefix: str | None = None,
        pad_width: int | None = None,
    ) -> list[str]:
        """Allocate *count* identifiers with concurrent single allocations.

        Each identifier still comes from its own atomic increment; the
        result is sorted so section order maps to ascending identifiers.
        """
        if count <= 0:
            return []
        identifiers = await asyncio.gather(
            *(self.allocate(counter_name, prefix, pad_width) for _ in range(count))
        )
        return sorted(identifiers)

    async def reserve_block(
        self,
        count: int,
        *,
        prefix: str | None = None,
        start_number: int,
        pad_width: int | None = None,
    ) -> IdentifierBlock:
        """Reserve *count* consecutive values starting at or after *start_number*.

        The prefix's counter is advanced to ``max(current, start_number - 1)
        + count`` in one atomic store operation, so the block never overlaps
        identifiers minted before or concurrently with it.
        """
        if count <= 0:
            raise ValidationError("Block size must be positive")
        if start_number < 1:
            raise ValidationError("Start number must be positive")

        prefix = prefix or self._prefix
        name = self._counter_for(prefix)
        end_value = await self._store.increment_counter(
            name,
            step=count,
            floor=start_number - 1,
            initial=self._initial_value,
        )
        block = IdentifierBlock(
            prefix=prefix,
            first_value=end_value - count + 1,
            count=count,
            pad_width=pad_width or self._pad_width,
        )
        logger.info(
            "identifier_block_reserved",
            counter=name,
            requested_start=start_number,
            first=block.first_value,
            last=block.last_value,
        )
        return block
