"""docchat API layer: routes, schemas and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    DeleteDocumentsRequest,
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    IndexStatsResponse,
    RecreateIndexRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ChatRequest",
    "ChatResponse",
    "DeleteDocumentsRequest",
    "DocumentListResponse",
    "ErrorResponse",
    "HealthResponse",
    "IndexStatsResponse",
    "RecreateIndexRequest",
]
