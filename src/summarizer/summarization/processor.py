"""Summarization job orchestration.

A job runs through:

    Loading -> SinglePass | ChunkedPass x n -> Consolidating -> Persisting -> Completed

or lands in Failed from any stage. Transcripts at or under the chunk size
get one summary call. Longer ones are split into word-bounded chunks that
are extracted sequentially and then consolidated by one more call
(map-reduce). Either way exactly one full SummaryOutput is persisted together
with its action items in a single writer transaction, or nothing is
persisted, the meeting is marked failed and the error re-raised for the queue.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple
from zoneinfo import ZoneInfo

import structlog

from src.summarizer.config import SummarizationConfig
from src.summarizer.errors import ResourceNotFoundError
from src.summarizer.meetings.schemas import ActionItemCreate, MeetingStatus
from src.summarizer.observability.metrics import record_job
from src.summarizer.summarization.collaborators import SummaryWriter, TranscriptReader
from src.summarizer.summarization.due_dates import parse_due_date
from src.summarizer.summarization.fallback import FallbackController
from src.summarizer.summarization.merge import merge_action_items, normalize_summary
from src.summarizer.summarization.parser import (
    parse_action_items,
    parse_chunk_summary,
    parse_summary,
    sanitize_action_item,
)
from src.summarizer.summarization.prompts.summary import (
    build_action_item_prompt,
    build_chunk_prompt,
    build_consolidation_prompt,
    build_summary_prompt,
)
from src.summarizer.summarization.prompts.system import (
    SYSTEM_PROMPT,
    SYSTEM_PROMPT_CHUNKED,
    SYSTEM_PROMPT_REGENERATE,
)
from src.summarizer.summarization.schemas import (
    ActionItem,
    ChunkSummary,
    CompletionOptions,
    SummarizationJob,
    SummarizationResult,
    SummaryOutput,
    TranscriptContext,
)
from src.summarizer.summarization.sizing import chunk_transcript, count_words, needs_chunking

logger = structlog.get_logger(__name__)


class ProcessingStage(str, Enum):
    LOADING = "loading"
    SINGLE_PASS = "single_pass"
    CHUNKED_PASS = "chunked_pass"
    CONSOLIDATING = "consolidating"
    PERSISTING = "persisting"
    COMPLETED = "completed"


class _PassOutcome(NamedTuple):
    summary: SummaryOutput
    tokens_used: int
    model_used: str


def _failure_metadata(error: BaseException, **extra: Any) -> dict[str, Any]:
    return {
        "error": str(error) or "Summarization failed",
        "failedAt": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


class SummarizationProcessor:
    """Turns one SummarizationJob into a persisted summary and action items.

    Args:
        reader: Transcript/meeting/participant lookups.
        writer: Atomic result commit and failure status updates.
        controller: Retry/fallback LLM generation.
        config: Chunk size, prompt version and due-date timezone.
    """

    def __init__(
        self,
        reader: TranscriptReader,
        writer: SummaryWriter,
        controller: FallbackController,
        config: SummarizationConfig,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._controller = controller
        self._config = config
        self._due_date_tz = ZoneInfo(config.due_date_timezone)

    # ── Job Processing ───────────────────────────────────────────────────────

    async def process(self, job: SummarizationJob) -> SummarizationResult:
        """Run a summarization job end to end.

        Raises:
            ResourceNotFoundError: Transcript or meeting missing.
            SummarizationError: Any provider, parse or configuration failure.
                The meeting is marked failed before the error propagates.
        """
        start_time = time.perf_counter()
        log = logger.bind(meeting_id=job.meeting_id, transcript_id=job.transcript_id)
        log.info("summarization_started", regenerate=job.regenerate, force_model=job.force_model)

        stage = ProcessingStage.LOADING
        path = "unknown"
        try:
            context = await self._load_context(job)
            word_count = count_words(context.full_text)
            log.info("transcript_loaded", word_count=word_count)

            if needs_chunking(word_count, self._config.max_words_per_chunk):
                stage, path = ProcessingStage.CHUNKED_PASS, "chunked"
                outcome = await self._process_chunked(context, job)
            else:
                stage, path = ProcessingStage.SINGLE_PASS, "single"
                outcome = await self._process_single(context, job, word_count)

            stage = ProcessingStage.PERSISTING
            summary = normalize_summary(outcome.summary)
            action_items = self._prepare_action_items(job.meeting_id, summary.action_items)

            stored = await self._writer.replace_summary_and_action_items(
                meeting_id=job.meeting_id,
                content=summary.to_json_dict(),
                items=action_items,
                model_used=outcome.model_used,
                prompt_version=job.prompt_version or self._config.prompt_version,
            )
        except Exception as e:
            log.error(
                "summarization_failed",
                stage=stage.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            record_job("failed", path)
            await self._mark_failed(job.meeting_id, _failure_metadata(e))
            raise

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        record_job("completed", path)
        log.info(
            "summarization_completed",
            stage=ProcessingStage.COMPLETED.value,
            summary_id=stored.id,
            action_item_count=len(action_items),
            tokens_used=outcome.tokens_used,
            model_used=outcome.model_used,
            processing_time_ms=processing_time_ms,
        )

        return SummarizationResult(
            meeting_id=job.meeting_id,
            summary_id=stored.id,
            action_item_count=len(action_items),
            tokens_used=outcome.tokens_used,
            model_used=outcome.model_used,
            processing_time_ms=processing_time_ms,
        )

    async def handle_failure(
        self,
        job: SummarizationJob,
        error: BaseException,
        attempts_made: int,
    ) -> None:
        """Mark a job permanently failed once the queue gives up on it."""
        logger.error(
            "summarization_permanently_failed",
            meeting_id=job.meeting_id,
            error=str(error),
            attempts=attempts_made,
        )
        await self._writer.update_meeting_status(
            job.meeting_id,
            MeetingStatus.FAILED,
            _failure_metadata(error, permanent=True, attempts=attempts_made),
        )

    # ── Action Item Re-extraction ────────────────────────────────────────────

    async def extract_action_items(
        self,
        meeting_id: str,
        force_model: str | None = None,
    ) -> list[ActionItemCreate]:
        """Run the thorough action-item prompt over a meeting's transcript.

        Returns validated, deduplicated items with resolved due dates.
        Nothing is persisted.
        """
        transcript = await self._reader.get_transcript_by_meeting(meeting_id)
        if transcript is None:
            raise ResourceNotFoundError("Transcript", meeting_id)

        generation = await self._controller.generate_with_fallback(
            build_action_item_prompt(transcript.full_text),
            count_words(transcript.full_text),
            CompletionOptions(system_prompt=SYSTEM_PROMPT),
            force_model=force_model,
        )
        items = merge_action_items(parse_action_items(generation.content))
        logger.info(
            "action_items_extracted",
            meeting_id=meeting_id,
            count=len(items),
            model_used=generation.selection.model,
        )
        return self._prepare_action_items(meeting_id, items)

    # ── Internals ────────────────────────────────────────────────────────────

    async def _load_context(self, job: SummarizationJob) -> TranscriptContext:
        transcript = await self._reader.get_transcript(job.transcript_id)
        if transcript is None:
            raise ResourceNotFoundError("Transcript", job.transcript_id)

        meeting = await self._reader.get_meeting(job.meeting_id)
        if meeting is None:
            raise ResourceNotFoundError("Meeting", job.meeting_id)

        participants = await self._reader.get_participants(job.meeting_id)
        return TranscriptContext(
            full_text=transcript.full_text,
            meeting_title=meeting.title,
            participant_names=tuple(p.name for p in participants),
            duration_seconds=meeting.duration_seconds,
        )

    def _summary_system_prompt(self, job: SummarizationJob) -> str:
        return SYSTEM_PROMPT_REGENERATE if job.regenerate else SYSTEM_PROMPT

    async def _process_single(
        self,
        context: TranscriptContext,
        job: SummarizationJob,
        word_count: int,
    ) -> _PassOutcome:
        prompt = job.custom_prompt or build_summary_prompt(context)
        generation = await self._controller.generate_with_fallback(
            prompt,
            word_count,
            CompletionOptions(system_prompt=self._summary_system_prompt(job)),
            force_model=job.force_model,
        )
        return _PassOutcome(
            summary=parse_summary(generation.content),
            tokens_used=generation.tokens_used.total,
            model_used=generation.selection.model,
        )

    async def _process_chunked(
        self,
        context: TranscriptContext,
        job: SummarizationJob,
    ) -> _PassOutcome:
        chunks = chunk_transcript(context.full_text, self._config.max_words_per_chunk)
        logger.info("chunked_processing_started", meeting_id=job.meeting_id, chunk_count=len(chunks))

        chunk_summaries: list[ChunkSummary] = []
        total_tokens = 0

        # Sequential on purpose: one in-flight call per job.
        for index, chunk in enumerate(chunks):
            generation = await self._controller.generate_with_fallback(
                build_chunk_prompt(chunk, index, len(chunks), context),
                count_words(chunk),
                CompletionOptions(system_prompt=SYSTEM_PROMPT_CHUNKED),
                force_model=job.force_model,
            )
            chunk_summaries.append(parse_chunk_summary(generation.content))
            total_tokens += generation.tokens_used.total
            logger.info(
                "chunk_processed",
                meeting_id=job.meeting_id,
                chunk=index + 1,
                total_chunks=len(chunks),
                model=generation.selection.model,
            )

        consolidation_prompt = build_consolidation_prompt(chunk_summaries, context)
        logger.info(
            "consolidation_started",
            meeting_id=job.meeting_id,
            stage=ProcessingStage.CONSOLIDATING.value,
            chunk_summaries=len(chunk_summaries),
        )
        consolidation = await self._controller.generate_with_fallback(
            consolidation_prompt,
            count_words(consolidation_prompt),
            CompletionOptions(system_prompt=self._summary_system_prompt(job)),
            force_model=job.force_model,
        )
        total_tokens += consolidation.tokens_used.total

        return _PassOutcome(
            summary=parse_summary(consolidation.content),
            tokens_used=total_tokens,
            model_used=consolidation.selection.model,
        )

    def _prepare_action_items(
        self,
        meeting_id: str,
        items: list[ActionItem],
    ) -> list[ActionItemCreate]:
        # One reference time per job.
        now = datetime.now(self._due_date_tz)
        prepared: list[ActionItemCreate] = []
        for item in map(sanitize_action_item, items):
            if not item.text:
                continue
            prepared.append(
                ActionItemCreate(
                    meeting_id=meeting_id,
                    text=item.text,
                    assignee=item.assignee,
                    due_date=parse_due_date(item.due_date, now=now),
                    priority=item.priority,
                )
            )
        return prepared

    async def _mark_failed(self, meeting_id: str, metadata: dict[str, Any]) -> None:
        try:
            await self._writer.update_meeting_status(meeting_id, MeetingStatus.FAILED, metadata)
        except Exception:
            # The original error is what the queue needs to see.
            logger.exception("meeting_status_update_failed", meeting_id=meeting_id)
