"""Unit tests for knowledge_hub.services.article_service."""

from __future__ import annotations

import pytest

from knowledge_hub.models.article import ArticleStatus, Identity
from knowledge_hub.services.article_service import parse_status
from knowledge_hub.utils.errors import (
    DuplicateIdentifierError,
    NotFoundError,
    ValidationError,
)


class TestCreate:
    async def test_allocates_and_summarizes(self, article_service) -> None:
        article = await article_service.create(
            {"title": "  VPN  ", "content": "word " * 60, "tags": ["vpn", "vpn"]},
            Identity(id="u1", role="admin"),
        )

        assert article.identifier == "KB-001001"
        assert article.title == "VPN"
        assert article.tags == ["vpn"]
        assert article.summary.endswith("...")
        assert len(article.summary) == 143

    async def test_keeps_caller_summary(self, article_service) -> None:
        article = await article_service.create(
            {"title": "T", "content": "body", "summary": "Custom preview"}
        )
        assert article.summary == "Custom preview"

    @pytest.mark.parametrize(
        "fields",
        [
            {},
            {"title": "T"},
            {"content": "c"},
            {"title": "  ", "content": "c"},
            {"title": "T", "content": " "},
        ],
    )
    async def test_requires_title_and_content(self, article_service, store, fields) -> None:
        with pytest.raises(ValidationError):
            await article_service.create(fields)
        assert await store.find_all() == []

    async def test_duplicate_identifier(self, article_service) -> None:
        await article_service.create({"identifier": "KB-1", "title": "A", "content": "a"})
        with pytest.raises(DuplicateIdentifierError):
            await article_service.create({"identifier": "KB-1", "title": "B", "content": "b"})

    @pytest.mark.parametrize("identifier", ["hello world", "KB001", "7-100", "KB-12a"])
    async def test_rejects_malformed_identifier(self, article_service, store, identifier) -> None:
        with pytest.raises(ValidationError, match="Invalid identifier"):
            await article_service.create({"identifier": identifier, "title": "T", "content": "c"})
        assert await store.find_all() == []


class TestReadUpdateDelete:
    async def test_get_missing(self, article_service) -> None:
        with pytest.raises(NotFoundError):
            await article_service.get("KB-000404")

    async def test_update_strips_protected_fields(self, article_service) -> None:
        created = await article_service.create({"title": "A", "content": "a"})

        updated = await article_service.update(
            created.identifier,
            {"identifier": "KB-999999", "updated_at": None, "tags": "x, y ,x"},
        )

        assert updated.identifier == created.identifier
        assert updated.tags == ["x", "y"]

    async def test_update_rejects_empty_title(self, article_service) -> None:
        created = await article_service.create({"title": "A", "content": "a"})
        with pytest.raises(ValidationError):
            await article_service.update(created.identifier, {"title": " "})

    async def test_update_keeps_summary_unless_cleared(self, article_service) -> None:
        created = await article_service.create({"title": "A", "content": "first body"})

        kept = await article_service.update(created.identifier, {"content": "second body"})
        assert kept.summary == "first body"

        regenerated = await article_service.update(
            created.identifier, {"content": "third body", "summary": ""}
        )
        assert regenerated.summary == "third body"

    async def test_update_missing(self, article_service) -> None:
        with pytest.raises(NotFoundError):
            await article_service.update("KB-000404", {"title": "x"})

    async def test_delete(self, article_service) -> None:
        created = await article_service.create({"title": "A", "content": "a"})

        await article_service.delete(created.identifier)

        with pytest.raises(NotFoundError):
            await article_service.delete(created.identifier)


class TestBulk:
    async def test_allocates_missing_identifiers_in_order(self, article_service) -> None:
        result = await article_service.bulk_insert(
            [
                {"title": "First"},
                {"identifier": "KB-000050", "title": "Given"},
                {"title": "Third"},
            ]
        )

        assert result.inserted == ["KB-001001", "KB-000050", "KB-001002"]
        listed = await article_service.list_all()
        assert [a.identifier for a in listed] == ["KB-000050", "KB-001001", "KB-001002"]
        assert {a.title for a in listed} == {"First", "Given", "Third"}

    async def test_missing_title_rejects_whole_batch(self, article_service, store) -> None:
        with pytest.raises(ValidationError, match=r"\[1\]"):
            await article_service.bulk_insert([{"title": "ok"}, {"content": "no title"}])
        assert await store.find_all() == []

    async def test_malformed_identifier_rejects_whole_batch(self, article_service, store) -> None:
        items = [
            {"identifier": "KB-000001", "title": "ok"},
            {"identifier": "hello world", "title": "bad"},
            {"title": "allocated"},
        ]
        with pytest.raises(ValidationError, match=r"invalid identifier at positions: \[1\]"):
            await article_service.bulk_insert(items)
        assert await store.find_all() == []

    async def test_empty_batch(self, article_service) -> None:
        with pytest.raises(ValidationError):
            await article_service.bulk_insert([])

    async def test_stats(self, article_service) -> None:
        await article_service.create({"title": "A", "content": "a", "category": "Net"})
        stats = await article_service.stats()
        assert stats["by_category"] == {"Net": 1}


class TestParseStatus:
    def test_values(self) -> None:
        assert parse_status(None) is ArticleStatus.PUBLISHED
        assert parse_status("") is ArticleStatus.PUBLISHED
        assert parse_status("draft") is ArticleStatus.DRAFT
        assert parse_status(ArticleStatus.DRAFT) is ArticleStatus.DRAFT

    def test_unknown(self) -> None:
        with pytest.raises(ValidationError, match="archived"):
            parse_status("archived")
