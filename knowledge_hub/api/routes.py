"""FastAPI routes for the knowledge hub.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  Domain errors raised by the
services propagate to ``ErrorHandlingMiddleware``, which maps them to JSON
error bodies with the right status code.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                         Method  Auth    Description
# ─────────────────────────────────────────────────────────────────────
# /api/kb/search?q=&limit=         GET     -       Ranked search (published only)
# /api/kb/articles                 GET     -       All articles by identifier
# /api/kb/article/{identifier}     GET     -       One article
# /api/kb/article                  POST    editor  Create (identifier allocated)
# /api/kb/article/{identifier}     PUT     editor  Partial update
# /api/kb/article/{identifier}     DELETE  editor  Delete
# /api/kb/bulk                     POST    editor  Insert an array of articles
# /api/kb/import-text              POST    editor  Split text into articles
# /api/kb/upload                   POST    editor  Upload .docx/.pdf/.txt/.html
# /api/kb/stats                    GET     -       Counts and counter values
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from knowledge_hub.api.schemas import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleMutationResponse,
    ArticleUpdateRequest,
    BulkInsertResponse,
    ErrorResponse,
    ImportResponse,
    ImportTextRequest,
    OkResponse,
    StatsResponse,
)
from knowledge_hub.config.settings import Settings
from knowledge_hub.interfaces.identity_provider import IIdentityProvider
from knowledge_hub.models.article import Article, Identity, ImportResult
from knowledge_hub.services.article_service import ArticleService
from knowledge_hub.services.ingestion_service import IngestionService
from knowledge_hub.services.search_ranker import SearchRanker
from knowledge_hub.utils.errors import ValidationError
from knowledge_hub.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/kb")

_UPLOAD_CHUNK_SIZE = 64 * 1024

# Identity used for write routes when no signing secret is configured.
_DEV_IDENTITY = Identity(id="dev", role="admin", department=None)


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    """Return the application settings from application state."""
    return request.app.state.settings


def _get_article_service(request: Request) -> ArticleService:
    """Return the article service from application state."""
    return request.app.state.article_service


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion service from application state."""
    return request.app.state.ingestion_service


def _get_search_ranker(request: Request) -> SearchRanker:
    """Return the search ranker from application state."""
    return request.app.state.search_ranker


def _get_identity_provider(request: Request) -> IIdentityProvider | None:
    """Return the identity provider, or ``None`` in development mode."""
    return getattr(request.app.state, "identity_provider", None)


def _require_editor(request: Request) -> Identity:
    """Authenticate the bearer token and check the caller may modify articles."""
    provider = _get_identity_provider(request)
    if provider is None:
        return _DEV_IDENTITY

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    identity = provider.authenticate(token.strip() if scheme.lower() == "bearer" else None)
    return provider.require_role(identity, _get_settings(request).editor_roles)


ArticleServiceDep = Annotated[ArticleService, Depends(_get_article_service)]
IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
SearchRankerDep = Annotated[SearchRanker, Depends(_get_search_ranker)]
EditorDep = Annotated[Identity, Depends(_require_editor)]

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _import_response(result: ImportResult) -> ImportResponse:
    return ImportResponse(
        created=result.created,
        first=result.first_identifier,
        last=result.last_identifier,
        identifiers=result.identifiers,
        duplicates=result.duplicates,
    )


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get("/search", response_model=ArticleListResponse, summary="Search published articles")
async def search_articles(
    ranker: SearchRankerDep,
    q: str = "",
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> ArticleListResponse:
    """Return published articles ranked for *q*; a blank query returns no items."""
    hits = await ranker.search(q, limit)
    return ArticleListResponse(items=[hit.article for hit in hits])


@router.get("/articles", response_model=ArticleListResponse, summary="List all articles")
async def list_articles(service: ArticleServiceDep) -> ArticleListResponse:
    return ArticleListResponse(items=await service.list_all())


@router.get(
    "/article/{identifier}",
    response_model=Article,
    responses=_ERRORS,
    summary="Fetch one article",
)
async def get_article(identifier: str, service: ArticleServiceDep) -> Article:
    return await service.get(identifier)


@router.get("/stats", response_model=StatsResponse, summary="Article and counter statistics")
async def get_stats(service: ArticleServiceDep) -> StatsResponse:
    return StatsResponse(**await service.stats())


# ---------------------------------------------------------------------------
# Write endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/article",
    response_model=ArticleMutationResponse,
    responses=_ERRORS,
    summary="Create an article",
)
async def create_article(
    body: ArticleCreateRequest,
    service: ArticleServiceDep,
    identity: EditorDep,
) -> ArticleMutationResponse:
    item = await service.create(body.model_dump(exclude_none=True), identity)
    return ArticleMutationResponse(item=item)


@router.put(
    "/article/{identifier}",
    response_model=ArticleMutationResponse,
    responses=_ERRORS,
    summary="Update an article",
)
async def update_article(
    identifier: str,
    body: ArticleUpdateRequest,
    service: ArticleServiceDep,
    identity: EditorDep,
) -> ArticleMutationResponse:
    item = await service.update(identifier, body.model_dump(exclude_unset=True), identity)
    return ArticleMutationResponse(item=item)


@router.delete(
    "/article/{identifier}",
    response_model=OkResponse,
    responses=_ERRORS,
    summary="Delete an article",
)
async def delete_article(
    identifier: str,
    service: ArticleServiceDep,
    identity: EditorDep,
) -> OkResponse:
    await service.delete(identifier, identity)
    return OkResponse()


@router.post(
    "/bulk",
    response_model=BulkInsertResponse,
    responses=_ERRORS,
    summary="Insert an array of articles",
)
async def bulk_insert_articles(
    body: list[ArticleCreateRequest],
    service: ArticleServiceDep,
    identity: EditorDep,
) -> BulkInsertResponse:
    result = await service.bulk_insert([item.model_dump(exclude_none=True) for item in body])
    _logger.info(
        "bulk_request_complete",
        by=identity.id,
        inserted=result.inserted_count,
        duplicates=len(result.duplicates),
    )
    return BulkInsertResponse(
        inserted=result.inserted_count,
        identifiers=result.inserted,
        duplicates=result.duplicates,
    )


@router.post(
    "/import-text",
    response_model=ImportResponse,
    responses=_ERRORS,
    summary="Split raw text into articles",
)
async def import_text(
    body: ImportTextRequest,
    ingestion: IngestionServiceDep,
    identity: EditorDep,
) -> ImportResponse:
    result = await ingestion.import_text(
        body.text,
        prefix=body.prefix,
        start_number=body.start_number,
        tags=body.tags,
        split_format=body.split_format,
        category=body.category,
        status=body.status,
    )
    _logger.info("import_request_complete", by=identity.id, created=result.created)
    return _import_response(result)


@router.post(
    "/upload",
    response_model=ImportResponse,
    responses=_ERRORS,
    summary="Upload a document and store it as one or many articles",
)
async def upload_document(
    request: Request,
    ingestion: IngestionServiceDep,
    identity: EditorDep,
    file: Annotated[UploadFile | None, File()] = None,
    mode: Annotated[str, Form()] = "split",
    tags: Annotated[str | None, Form()] = None,
    split_format: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
) -> ImportResponse:
    """Accept a multipart upload; ``tags`` is a comma-separated list."""
    if file is None:
        raise ValidationError("No file")

    # Read in chunks so an oversized upload is rejected without buffering it all.
    max_bytes = _get_settings(request).max_upload_bytes
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise ValidationError(f"File exceeds the {max_bytes} byte upload limit")
        chunks.append(chunk)

    result = await ingestion.ingest_upload(
        b"".join(chunks),
        file.filename,
        mode=mode,
        tags=tags.split(",") if tags else None,
        split_format=split_format,
        category=category,
    )
    _logger.info(
        "upload_request_complete",
        by=identity.id,
        filename=file.filename,
        created=result.created,
    )
    return _import_response(result)
