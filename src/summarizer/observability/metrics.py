"""Prometheus metrics for LLM calls and summarization jobs.

Provides:
- track_llm_call(): Context manager for per-call LLM metrics
- record_job(): Counter bump for finished summarization jobs
- get_metrics_response(): Prometheus exposition for the /metrics route
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.responses import Response

# ── LLM Metrics ──────────────────────────────────────────────────────────────

llm_requests_total = Counter(
    "llm_requests_total",
    "Total LLM API requests",
    ["provider", "model", "status"],
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "LLM API request duration in seconds",
    ["provider", "model"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

llm_tokens_used_total = Counter(
    "llm_tokens_used_total",
    "Total LLM tokens consumed",
    ["provider", "model", "token_type"],
)

# ── Job Metrics ──────────────────────────────────────────────────────────────

summarization_jobs_total = Counter(
    "summarization_jobs_total",
    "Summarization jobs by outcome and processing path",
    ["status", "path"],
)


@asynccontextmanager
async def track_llm_call(
    provider: str,
    model: str,
) -> AsyncGenerator[dict[str, Any], None]:
    """Context manager that tracks LLM call metrics.

    Usage:
        async with track_llm_call("openai", "gpt-4o-mini") as tracker:
            result = await call_llm(...)
            tracker["prompt_tokens"] = result.usage.prompt_tokens
            tracker["completion_tokens"] = result.usage.completion_tokens

    Records duration, request count (success/error) and token usage.
    """
    tracker: dict[str, Any] = {
        "prompt_tokens": 0,
        "completion_tokens": 0,
    }
    start_time = time.perf_counter()
    status = "success"

    try:
        yield tracker
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time

        llm_requests_total.labels(provider=provider, model=model, status=status).inc()
        llm_request_duration_seconds.labels(provider=provider, model=model).observe(duration)

        if tracker.get("prompt_tokens"):
            llm_tokens_used_total.labels(
                provider=provider,
                model=model,
                token_type="prompt",
            ).inc(tracker["prompt_tokens"])

        if tracker.get("completion_tokens"):
            llm_tokens_used_total.labels(
                provider=provider,
                model=model,
                token_type="completion",
            ).inc(tracker["completion_tokens"])


def record_job(status: str, path: str) -> None:
    """Count a finished job. ``path`` is "single", "chunked" or "unknown"."""
    summarization_jobs_total.labels(status=status, path=path).inc()


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
