"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics and
health checks.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ideamatch import __version__
from ideamatch.api.routes import matching_router, router
from ideamatch.config import CandidateSourceKind, get_settings
from ideamatch.embeddings.service import create_embedding_service
from ideamatch.exceptions import ErrorCode, IdeaMatchError
from ideamatch.llm.client import OpenAICompatibleClient
from ideamatch.logging_config import get_logger, setup_logging
from ideamatch.matching.orchestrator import MatchOrchestrator
from ideamatch.matching.sources import RemoteRankedSource
from ideamatch.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from ideamatch.storage.service import QdrantIdeaStore
from ideamatch.tagging.service import TagExtractor

logger = get_logger(__name__)

_CLOSEABLE = ("embedding_service", "llm_client", "idea_store", "remote_source")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the shared services on startup and closes their clients on
    shutdown.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting Idea Match Service",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
            "embedding_provider": settings.embedding.provider.value,
            "candidate_source": settings.matching.source.value,
        },
    )

    app.state.embedding_service = create_embedding_service(settings.embedding)
    app.state.llm_client = OpenAICompatibleClient(settings.llm)
    app.state.idea_store = QdrantIdeaStore(settings.qdrant)
    app.state.tag_extractor = TagExtractor(app.state.llm_client, settings.tagging)
    app.state.orchestrator = MatchOrchestrator(app.state.embedding_service, settings.matching)
    if settings.matching.source == CandidateSourceKind.REMOTE:
        app.state.remote_source = RemoteRankedSource(settings.ranking)

    if not app.state.llm_client.is_configured:
        logger.warning("LLM_API_KEY is not set; tag extraction is disabled")

    yield

    for name in _CLOSEABLE:
        service = getattr(app.state, name, None)
        if service is not None:
            await service.close()

    logger.info("Shutting down Idea Match Service")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Idea Match Service",
        description="Semantic matching, tagging and grouping of ideas",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(IdeaMatchError, idea_match_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Observability"])
    app.include_router(router)
    app.include_router(matching_router)

    return app


async def idea_match_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle IdeaMatchError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, IdeaMatchError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=_get_status_code(exc.code),
        content=exc.to_dict(),
    )


_UPSTREAM_CODES = {
    ErrorCode.UPSTREAM_UNAVAILABLE,
    ErrorCode.EMBEDDING_SERVICE_ERROR,
    ErrorCode.RANKING_SERVICE_ERROR,
    ErrorCode.LLM_SERVICE_ERROR,
}


def _get_status_code(error_code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    if error_code == ErrorCode.VALIDATION_ERROR:
        return 400

    if error_code == ErrorCode.COLLECTION_NOT_FOUND:
        return 404

    if error_code == ErrorCode.LLM_RATE_LIMIT:
        return 429

    if error_code in _UPSTREAM_CODES:
        return 502

    if error_code == ErrorCode.LLM_TIMEOUT:
        return 504

    # Configuration, parse and storage errors
    return 500


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check() -> dict[str, Any]:
    """Kubernetes readiness probe.

    Reports which optional upstreams are configured. An unconfigured LLM
    disables tagging but not matching, so it does not fail readiness.

    Returns:
        Readiness status with component checks.
    """
    settings = get_settings()
    llm_key = settings.llm.api_key
    checks: dict[str, str] = {
        "config": "ok",
        "llm": "ok" if llm_key and llm_key.get_secret_value() else "not_configured",
        "embedding_provider": settings.embedding.provider.value,
        "candidate_source": settings.matching.source.value,
    }

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
