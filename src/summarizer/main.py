"""FastAPI application factory.

Creates the app with logging middleware, a lifespan that owns the
ServiceContext, the v1 API router and the Prometheus /metrics route.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.requests import Request
from fastapi.responses import Response

from src.summarizer.api.middleware.logging import LoggingMiddleware
from src.summarizer.api.v1.router import router as v1_router
from src.summarizer.config import get_settings
from src.summarizer.core.context import ServiceContext
from src.summarizer.core.logging import configure_structlog
from src.summarizer.observability.metrics import get_metrics_response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build the service context on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog(settings)

    ctx = await ServiceContext.create(settings)
    app.state.service_context = ctx
    log.info("application_started", environment=settings.ENVIRONMENT.value)

    try:
        yield
    finally:
        app.state.service_context = None
        await ctx.aclose()
        log.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Meeting Summarizer API",
        version="0.1.0",
        description="Transcript summarization, action items and insight extraction",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
