"""Queue-facing entry points.

The external job queue owns delivery, attempt counting and redelivery. It
calls ``process_summarization_job`` for every delivery and
``handle_job_failure`` once its own attempt budget is exhausted.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.summarizer.core.context import ServiceContext
from src.summarizer.summarization.schemas import SummarizationJob, SummarizationResult

logger = structlog.get_logger(__name__)


def _parse_payload(payload: dict[str, Any] | SummarizationJob) -> SummarizationJob:
    if isinstance(payload, SummarizationJob):
        return payload
    return SummarizationJob.model_validate(payload)


async def process_summarization_job(
    ctx: ServiceContext,
    payload: dict[str, Any] | SummarizationJob,
) -> dict[str, Any]:
    """Process one job delivery and return the camelCase result payload.

    Raises whatever the processor raises; the queue decides on redelivery.
    """
    job = _parse_payload(payload)
    result: SummarizationResult = await ctx.processor.process(job)
    return result.to_json_dict()


async def handle_job_failure(
    ctx: ServiceContext,
    payload: dict[str, Any] | SummarizationJob,
    error: BaseException,
    attempts_made: int,
) -> None:
    """Mark the job's meeting permanently failed."""
    job = _parse_payload(payload)
    logger.warning("job_attempts_exhausted", meeting_id=job.meeting_id, attempts=attempts_made)
    await ctx.processor.handle_failure(job, error, attempts_made)
