"""Unit tests for Prometheus metrics, logging setup and settings projection."""

from __future__ import annotations

import pytest
import structlog
from prometheus_client import REGISTRY

from src.summarizer.config import Environment, Settings, SummarizationConfig
from src.summarizer.core.logging import configure_structlog
from src.summarizer.observability.metrics import get_metrics_response, record_job, track_llm_call


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestTrackLlmCall:
    @pytest.mark.asyncio
    async def test_success_records_tokens(self):
        labels = {"provider": "obs-test", "model": "m-success"}
        before = _sample("llm_requests_total", status="success", **labels)

        async with track_llm_call("obs-test", "m-success") as tracker:
            tracker["prompt_tokens"] = 12
            tracker["completion_tokens"] = 30

        assert _sample("llm_requests_total", status="success", **labels) == before + 1
        assert _sample("llm_tokens_used_total", token_type="prompt", **labels) >= 12
        assert _sample("llm_tokens_used_total", token_type="completion", **labels) >= 30

    @pytest.mark.asyncio
    async def test_error_counted_and_reraised(self):
        labels = {"provider": "obs-test", "model": "m-error"}
        before = _sample("llm_requests_total", status="error", **labels)

        with pytest.raises(RuntimeError):
            async with track_llm_call("obs-test", "m-error"):
                raise RuntimeError("boom")

        assert _sample("llm_requests_total", status="error", **labels) == before + 1


class TestJobMetrics:
    def test_record_job(self):
        before = _sample("summarization_jobs_total", status="completed", path="chunked")
        record_job("completed", "chunked")
        assert _sample("summarization_jobs_total", status="completed", path="chunked") == before + 1

    def test_exposition(self):
        record_job("failed", "single")
        response = get_metrics_response()

        assert response.media_type.startswith("text/plain")
        assert b"summarization_jobs_total" in response.body


class TestConfiguration:
    def test_summarization_config_projection(self):
        settings = Settings(
            MODEL_SELECTION_THRESHOLD=3000,
            MAX_WORDS_PER_CHUNK=2500,
            LLM_MAX_RETRIES=5,
            LLM_RETRY_DELAY=0.25,
            PROMPT_VERSION="2.0.0",
            DUE_DATE_TIMEZONE="Europe/Berlin",
            _env_file=None,
        )
        config = settings.summarization_config()

        assert config == SummarizationConfig(
            model_selection_threshold=3000,
            max_words_per_chunk=2500,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            max_retries=5,
            retry_delay=0.25,
            prompt_version="2.0.0",
            due_date_timezone="Europe/Berlin",
        )

    def test_config_is_frozen(self):
        config = SummarizationConfig()
        with pytest.raises(ValueError):
            config.max_retries = 10

    @pytest.mark.parametrize("environment", [Environment.development, Environment.production])
    def test_configure_structlog(self, environment):
        configure_structlog(Settings(ENVIRONMENT=environment, LOG_LEVEL="debug", _env_file=None))

        processors = structlog.get_config()["processors"]
        renderer = processors[-1]
        if environment == Environment.production:
            assert isinstance(renderer, structlog.processors.JSONRenderer)
        else:
            assert isinstance(renderer, structlog.dev.ConsoleRenderer)
        structlog.reset_defaults()
