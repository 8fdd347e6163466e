"""Insight template catalog and on-demand extraction endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import model_validator

from src.summarizer.api.deps import get_service_context
from src.summarizer.core.context import ServiceContext
from src.summarizer.errors import (
    ConfigurationError,
    ResourceNotFoundError,
    SummarizationError,
    TemplateValidationError,
)
from src.summarizer.summarization.schemas import CamelModel, InsightResult

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["insights"])


# ── Request / Response Schemas ───────────────────────────────────────────────


class InsightRequest(CamelModel):
    """Either a catalog ``templateId`` or an inline user-defined ``template``."""

    template_id: str | None = None
    template: dict[str, Any] | None = None
    force_model: str | None = None

    @model_validator(mode="after")
    def _one_template_source(self) -> InsightRequest:
        if (self.template_id is None) == (self.template is None):
            raise ValueError("Provide exactly one of templateId or template")
        return self


class InsightResponse(CamelModel):
    result: InsightResult
    tokens_used: int
    model_used: str
    processing_time_ms: int


def _to_http_error(exc: SummarizationError) -> HTTPException:
    if isinstance(exc, ResourceNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, TemplateValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": exc.message, "errors": exc.errors},
        )
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"message": exc.message, "code": exc.code},
    )


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/insights/templates")
async def list_templates(ctx: ServiceContext = Depends(get_service_context)):
    """List the built-in insight templates."""
    return [t.to_json_dict() for t in ctx.insights.get_available_templates()]


@router.post("/meetings/{meeting_id}/insights", response_model=InsightResponse)
async def extract_insights(
    meeting_id: str,
    body: InsightRequest,
    ctx: ServiceContext = Depends(get_service_context),
):
    """Run one insight template against a meeting's transcript."""
    template = body.template_id if body.template_id is not None else body.template
    try:
        extraction = await ctx.insights.extract_insights(
            meeting_id, template, force_model=body.force_model
        )
    except SummarizationError as e:
        logger.warning(
            "insight_request_failed",
            meeting_id=meeting_id,
            code=e.code,
            error=e.message,
        )
        raise _to_http_error(e) from e

    return InsightResponse(
        result=extraction.result,
        tokens_used=extraction.tokens_used,
        model_used=extraction.model_used,
        processing_time_ms=extraction.processing_time_ms,
    )
