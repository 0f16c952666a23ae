"""Knowledge hub API layer: routes, schemas, and middleware."""

from knowledge_hub.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from knowledge_hub.api.routes import router
from knowledge_hub.api.schemas import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleUpdateRequest,
    ErrorResponse,
    HealthResponse,
    ImportResponse,
    ImportTextRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ArticleCreateRequest",
    "ArticleListResponse",
    "ArticleUpdateRequest",
    "ErrorResponse",
    "HealthResponse",
    "ImportResponse",
    "ImportTextRequest",
]
