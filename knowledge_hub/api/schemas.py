"""Pydantic request/response schemas for the knowledge hub API.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# Request schemas keep every field optional so that a missing title or
# empty text reaches the service layer and comes back as a 400
# ValidationError instead of FastAPI's generic 422.  The services own
# the business validation; these models only shape the JSON.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from knowledge_hub.models.article import Article


class ArticleCreateRequest(BaseModel):
    """Fields accepted when creating an article (also one bulk item)."""

    identifier: str | None = None
    title: str | None = None
    summary: str | None = None
    content: str | None = None
    tags: list[str] | str | None = None
    status: str | None = None
    category: str | None = None


class ArticleUpdateRequest(ArticleCreateRequest):
    """Partial update.  ``identifier`` is accepted but never applied."""


class ImportTextRequest(BaseModel):
    """Raw text to split into articles."""

    text: str | None = None
    prefix: str | None = Field(default=None, description="Identifier prefix, e.g. KB.")
    start_number: int | None = Field(default=None, ge=1, description="First number to try.")
    tags: list[str] | None = None
    split_format: str | None = Field(default=None, description="marker, heading or markup.")
    category: str | None = None
    status: str | None = None


class ArticleListResponse(BaseModel):
    """Search results or the full article listing."""

    items: list[Article] = Field(default_factory=list)


class ArticleMutationResponse(BaseModel):
    """Response to a create or update."""

    ok: bool = True
    item: Article


class OkResponse(BaseModel):
    ok: bool = True


class BulkInsertResponse(BaseModel):
    """Outcome of ``POST /bulk``."""

    ok: bool = True
    inserted: int
    identifiers: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)


class ImportResponse(BaseModel):
    """Outcome of a text import or document upload."""

    ok: bool = True
    created: int
    first: str | None = None
    last: str | None = None
    identifiers: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)


class StatsResponse(BaseModel):
    total_articles: int
    by_status: dict[str, int] = Field(default_factory=dict)
    by_category: dict[str, int] = Field(default_factory=dict)
    counters: dict[str, int] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    ok: bool = True
    message: str
    version: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
