"""Knowledge hub FastAPI application entry point.

Wires together the article store, identifier allocator, converter, identity
provider, services and routes via dependency injection.  Loads
configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes ``build_services`` for CLI or scripting usage outside the web
server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from knowledge_hub.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from knowledge_hub.api.routes import router as api_router
from knowledge_hub.api.schemas import HealthResponse
from knowledge_hub.config.loader import load_config
from knowledge_hub.config.settings import Settings
from knowledge_hub.providers.converter.document_converter import DocumentConverter
from knowledge_hub.providers.identity.signed_token_provider import SignedTokenIdentityProvider
from knowledge_hub.providers.store.sqlite_article_store import SQLiteArticleStore
from knowledge_hub.services.article_service import ArticleService
from knowledge_hub.services.identifier_allocator import IdentifierAllocator
from knowledge_hub.services.ingestion_service import IngestionService
from knowledge_hub.services.search_ranker import SearchRanker
from knowledge_hub.services.section_splitter import SplitFormat
from knowledge_hub.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    ingestion_config = app_config.get("ingestion", {})

    # -- Providers --
    store = SQLiteArticleStore(
        db_path=app_settings.db_path,
        timeout=app_settings.store_timeout_seconds,
    )
    converter = DocumentConverter(heading_tag=app_settings.markup_heading_tag)
    identity_provider = (
        SignedTokenIdentityProvider(
            secret=app_settings.auth_secret,
            ttl_hours=app_settings.auth_token_ttl_hours,
        )
        if app_settings.auth_enabled()
        else None
    )

    # -- Services --
    allocator = IdentifierAllocator(
        store,
        counter_name=app_settings.counter_name,
        prefix=app_settings.identifier_prefix,
        pad_width=app_settings.identifier_pad_width,
        initial_value=app_settings.counter_initial_value,
    )
    article_service = ArticleService(
        store,
        allocator,
        summary_budget=app_settings.summary_budget,
    )
    ingestion_service = IngestionService(
        store,
        allocator,
        converter,
        summary_budget=app_settings.summary_budget,
        marker=app_settings.split_marker,
        heading_tag=app_settings.markup_heading_tag,
        default_split_format=SplitFormat.parse(app_settings.default_split_format),
        import_tags=ingestion_config.get("import_tags"),
        upload_tags=ingestion_config.get("upload_tags"),
        allowed_extensions=ingestion_config.get("allowed_extensions"),
        max_upload_bytes=app_settings.max_upload_bytes,
    )
    search_ranker = SearchRanker(
        store,
        default_limit=app_settings.search_default_limit,
        max_limit=app_settings.search_max_limit,
    )

    return {
        "article_store": store,
        "document_converter": converter,
        "identity_provider": identity_provider,
        "identifier_allocator": allocator,
        "article_service": article_service,
        "ingestion_service": ingestion_service,
        "search_ranker": search_ranker,
    }


def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Build the component graph without starting the web server.

    The caller is responsible for awaiting
    ``components["article_store"].initialize()`` before first use.
    """
    app_settings = custom_settings or settings
    return _build_all(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the article store and wire services onto ``app.state``."""
    app_settings: Settings = application.state.settings
    components = application.state.prebuilt_components or _build_all(
        app_settings, application.state.config
    )

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["article_store"].initialize()

    _logger.info(
        "app_startup",
        version=application.version,
        environment=app_settings.app_env,
        db_path=app_settings.db_path,
        auth_enabled=components.get("identity_provider") is not None,
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to use; defaults to the module-level environment settings.
    components:
        Pre-built component dict (as returned by ``_build_all``); built at
        startup when omitted.
    """
    app_settings = app_settings or settings
    app_config = load_config(settings=app_settings)
    app_meta = app_config.get("app", {})

    application = FastAPI(
        title="Knowledge Hub API",
        version=str(app_meta.get("version", "0.1.0")),
        description=(
            "Split raw text and uploaded documents into knowledge-base articles "
            "with permanent KB identifiers, then search and retrieve them."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings
    application.state.config = app_config
    application.state.prebuilt_components = components

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_meta.get("cors_origins"))

    # -- API routes --
    application.include_router(api_router)

    @application.get("/", response_model=HealthResponse, summary="Health check")
    async def root() -> HealthResponse:
        return HealthResponse(
            message=f"{app_meta.get('name', 'knowledge-hub')} API running",
            version=application.version,
        )

    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    uvicorn.run(
        "knowledge_hub.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
