"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from src.summarizer.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Basic liveness check.

    Reports which LLM providers have credentials; no provider is called.
    """
    settings = get_settings()
    ctx = getattr(request.app.state, "service_context", None)
    providers = [c.provider for c in ctx.registry.configured()] if ctx is not None else []
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT.value,
        "providers": providers,
    }
