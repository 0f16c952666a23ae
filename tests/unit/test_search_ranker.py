"""Unit tests for knowledge_hub.services.search_ranker."""

from __future__ import annotations

import asyncio
import math

from knowledge_hub.models.article import ArticleStatus
from knowledge_hub.services.search_ranker import SearchRanker


class TestSearch:
    async def test_blank_query_returns_nothing(self, ranker, store, article_factory) -> None:
        await store.create(article_factory("KB-001001"))

        assert await ranker.search("") == []
        assert await ranker.search("   ") == []
        assert await ranker.search(None) == []

    async def test_identifier_match_without_text_overlap(
        self, ranker, store, article_factory
    ) -> None:
        await store.create(article_factory("KB-001042", "Printer jam", "Remove the tray"))

        hits = await ranker.search("001042")

        assert [h.article.identifier for h in hits] == ["KB-001042"]
        assert hits[0].matched_identifier is True
        assert math.isinf(hits[0].score)

    async def test_identifier_match_is_case_insensitive(
        self, ranker, store, article_factory
    ) -> None:
        await store.create(article_factory("KB-001042"))

        hits = await ranker.search("kb-00104")
        assert [h.article.identifier for h in hits] == ["KB-001042"]

    async def test_text_match_any_term(self, ranker, store, article_factory) -> None:
        await store.create(article_factory("KB-001001", "Reset password", "Open the console"))
        await store.create(article_factory("KB-001002", "VPN token", "Raise a request"))
        await store.create(article_factory("KB-001003", "Printer jam", "Remove the tray"))

        hits = await ranker.search("password vpn")

        assert {h.article.identifier for h in hits} == {"KB-001001", "KB-001002"}
        assert all(not h.matched_identifier for h in hits)

    async def test_drafts_never_returned(self, ranker, store, article_factory) -> None:
        await store.create(
            article_factory("KB-001001", "Draft password", "hidden", status=ArticleStatus.DRAFT)
        )

        assert await ranker.search("password") == []
        assert await ranker.search("KB-001001") == []

    async def test_identifier_tier_ranks_first_and_dedupes(
        self, ranker, store, article_factory
    ) -> None:
        # KB-001001 mentions 001002 in its body; KB-001002 matches by identifier.
        await store.create(article_factory("KB-001001", "Cross ref", "see 001002 for details"))
        await store.create(article_factory("KB-001002", "Target", "unrelated"))

        hits = await ranker.search("001002")

        assert [h.article.identifier for h in hits] == ["KB-001002", "KB-001001"]
        assert hits[0].matched_identifier
        assert not hits[1].matched_identifier

    async def test_article_matching_both_ways_appears_once(
        self, ranker, store, article_factory
    ) -> None:
        await store.create(article_factory("KB-001001", "About KB", "KB-001001 itself"))

        hits = await ranker.search("KB-001001")

        assert [h.article.identifier for h in hits] == ["KB-001001"]
        assert hits[0].matched_identifier

    async def test_higher_score_first(self, ranker, store, article_factory) -> None:
        for i in range(4):
            await store.create(article_factory(f"KB-00200{i}", "Filler", "printer toner paper"))
        await store.create(
            article_factory("KB-001001", "Mentions", "network once among many other words here")
        )
        await store.create(
            article_factory("KB-001002", "Network network", "network network network")
        )

        hits = await ranker.search("network")

        assert [h.article.identifier for h in hits] == ["KB-001002", "KB-001001"]
        assert hits[0].score >= hits[1].score


class TestLimits:
    async def _seed(self, store, article_factory, count: int) -> None:
        for i in range(count):
            await store.create(article_factory(f"KB-00{1001 + i}", f"Guide {i}", "shared term"))

    async def test_default_limit(self, store, article_factory) -> None:
        await self._seed(store, article_factory, 5)
        ranker = SearchRanker(store, default_limit=3, max_limit=10)

        assert len(await ranker.search("shared")) == 3

    async def test_limit_clamped_to_max(self, store, article_factory) -> None:
        await self._seed(store, article_factory, 6)
        ranker = SearchRanker(store, default_limit=2, max_limit=4)

        assert len(await ranker.search("shared", limit=100)) == 4

    async def test_non_positive_limit_becomes_one(self, ranker, store, article_factory) -> None:
        await self._seed(store, article_factory, 3)

        assert len(await ranker.search("shared", limit=0)) == 1

    async def test_limit_caps_identifier_matches(self, ranker, store, article_factory) -> None:
        await self._seed(store, article_factory, 3)

        hits = await ranker.search("KB-0010", limit=2)

        assert len(hits) == 2
        assert all(h.matched_identifier for h in hits)

    async def test_capped_identifier_search_keeps_top_ranked(
        self, ranker, store, article_factory
    ) -> None:
        await self._seed(store, article_factory, 3)
        await asyncio.sleep(0.01)
        await store.update("KB-001001", {"title": "Guide refreshed"})
        await asyncio.sleep(0.01)
        await store.update("KB-001003", {"title": "Guide refreshed again"})

        full = [h.article.identifier for h in await ranker.search("KB-00")]
        capped = [h.article.identifier for h in await ranker.search("KB-00", limit=1)]

        assert full[:2] == ["KB-001003", "KB-001001"]
        assert capped == full[:1]
