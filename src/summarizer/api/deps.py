"""FastAPI dependency injection for the service context."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.summarizer.core.context import ServiceContext


def get_service_context(request: Request) -> ServiceContext:
    """Retrieve the ServiceContext from app.state, 503 if not initialized."""
    ctx = getattr(request.app.state, "service_context", None)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service context not initialized",
        )
    return ctx
