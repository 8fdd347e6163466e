"""Tests for the queue-facing entry points, including a full run over SQLite."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from conftest import make_summary_json
from src.summarizer.config import Settings
from src.summarizer.core.context import ServiceContext
from src.summarizer.errors import LLMApiError
from src.summarizer.meetings.schemas import MeetingStatus, ParticipantRecord
from src.summarizer.summarization.providers import ProviderRegistry
from src.summarizer.worker import handle_job_failure, process_summarization_job


class TestProcessSummarizationJob:
    @pytest.mark.asyncio
    async def test_camel_case_payload(self, repo, make_provider, make_processor):
        meeting_id, transcript_id = repo.seed("Alice: ship it on Friday.")
        ctx = SimpleNamespace(processor=make_processor(make_provider("openai", outcomes=[make_summary_json()])))

        result = await process_summarization_job(
            ctx, {"meetingId": meeting_id, "transcriptId": transcript_id}
        )

        assert result["meetingId"] == meeting_id
        assert result["modelUsed"] == "gpt-test"
        assert result["actionItemCount"] == 1
        assert set(result) == {
            "meetingId",
            "summaryId",
            "actionItemCount",
            "tokensUsed",
            "modelUsed",
            "processingTimeMs",
        }

    @pytest.mark.asyncio
    async def test_errors_propagate_for_redelivery(self, repo, make_provider, make_processor):
        meeting_id, transcript_id = repo.seed("text")
        error = LLMApiError("unavailable", "openai", status_code=503)
        ctx = SimpleNamespace(processor=make_processor(make_provider("openai", outcomes=[error] * 3)))

        with pytest.raises(LLMApiError):
            await process_summarization_job(
                ctx, {"meetingId": meeting_id, "transcriptId": transcript_id}
            )

    @pytest.mark.asyncio
    async def test_invalid_payload(self, make_provider, make_processor):
        ctx = SimpleNamespace(processor=make_processor(make_provider("openai")))

        with pytest.raises(ValueError):
            await process_summarization_job(ctx, {"meetingId": "m1"})


class TestHandleJobFailure:
    @pytest.mark.asyncio
    async def test_marks_meeting_permanently_failed(self, repo, make_provider, make_processor):
        meeting_id, transcript_id = repo.seed("text")
        ctx = SimpleNamespace(processor=make_processor(make_provider("openai")))

        await handle_job_failure(
            ctx,
            {"meetingId": meeting_id, "transcriptId": transcript_id},
            RuntimeError("gave up"),
            attempts_made=5,
        )

        meeting = repo.meetings[meeting_id]
        assert meeting.status == MeetingStatus.FAILED
        assert meeting.metadata["attempts"] == 5
        assert meeting.metadata["permanent"] is True


class TestServiceContext:
    @pytest.mark.asyncio
    async def test_end_to_end_over_sqlite(self, tmp_path, make_provider):
        settings = Settings(
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'summarizer.db'}",
            _env_file=None,
        )
        openai = make_provider("openai", outcomes=[make_summary_json()])
        ctx = await ServiceContext.create(settings, registry=ProviderRegistry([openai]))
        try:
            meeting = await ctx.repository.create_meeting(
                title="Launch", participants=[ParticipantRecord(name="Alice")]
            )
            transcript = await ctx.repository.create_transcript(meeting.id, "Alice: send the launch email.")

            result = await process_summarization_job(
                ctx, {"meetingId": meeting.id, "transcriptId": transcript.id}
            )

            summary = await ctx.repository.get_summary(meeting.id)
            items = await ctx.repository.get_action_items(meeting.id)
            stored_meeting = await ctx.repository.get_meeting(meeting.id)
        finally:
            await ctx.aclose()

        assert result["summaryId"] == summary.id
        assert summary.content["sentiment"] == "positive"
        assert [i.text for i in items] == ["Send launch email"]
        assert stored_meeting.status == MeetingStatus.COMPLETED
        assert "Launch" in openai.calls[0][0]
