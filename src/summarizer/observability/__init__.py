"""Observability package: Prometheus metrics for LLM calls and jobs."""

from src.summarizer.observability.metrics import record_job, track_llm_call

__all__ = ["record_job", "track_llm_call"]
