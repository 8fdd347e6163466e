"""Shared test fixtures for the summarization engine.

Provides:
- InMemoryMeetingRepository: TranscriptReader + SummaryWriter test double
- FakeProvider: scripted ProviderClient double (no network, records calls)
- Factories for provider registries, fallback controllers and processors
- JSON builders for model responses

No test touches a real LLM provider.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.summarizer.config import SummarizationConfig
from src.summarizer.errors import ResourceNotFoundError
from src.summarizer.meetings.schemas import (
    ActionItemCreate,
    MeetingRecord,
    MeetingStatus,
    ParticipantRecord,
    SummaryRecord,
    TranscriptRecord,
)
from src.summarizer.summarization.fallback import FallbackController
from src.summarizer.summarization.insights import InsightsService
from src.summarizer.summarization.processor import SummarizationProcessor
from src.summarizer.summarization.providers import ProviderRegistry
from src.summarizer.summarization.schemas import (
    CompletionOptions,
    CompletionResult,
    TokenUsage,
)
from src.summarizer.summarization.selector import ModelSelector


# ── Test Doubles ─────────────────────────────────────────────────────────────


class InMemoryMeetingRepository:
    """In-memory test double for MeetingRepository.

    Mirrors the TranscriptReader and SummaryWriter protocols. Every write
    call is appended to ``calls``. Setting ``fail_replace_with`` makes the
    result commit raise without touching stored state.
    """

    def __init__(self) -> None:
        self.meetings: dict[str, MeetingRecord] = {}
        self.transcripts: dict[str, TranscriptRecord] = {}
        self.participants: dict[str, list[ParticipantRecord]] = {}
        self.summaries: dict[str, SummaryRecord] = {}
        self.action_items: dict[str, list[ActionItemCreate]] = {}
        self.calls: list[str] = []
        self.fail_replace_with: BaseException | None = None

    def seed(
        self,
        full_text: str,
        title: str | None = "Weekly Sync",
        duration_seconds: int | None = 1800,
        participants: list[str] | None = None,
    ) -> tuple[str, str]:
        """Register a meeting with one transcript. Returns (meeting_id, transcript_id)."""
        meeting_id = str(uuid.uuid4())
        transcript_id = str(uuid.uuid4())
        self.meetings[meeting_id] = MeetingRecord(
            id=meeting_id, title=title, duration_seconds=duration_seconds
        )
        self.transcripts[transcript_id] = TranscriptRecord(
            id=transcript_id, meeting_id=meeting_id, full_text=full_text
        )
        self.participants[meeting_id] = [
            ParticipantRecord(name=name) for name in (participants or ["Alice", "Bob"])
        ]
        return meeting_id, transcript_id

    async def get_transcript(self, transcript_id: str) -> TranscriptRecord | None:
        return self.transcripts.get(transcript_id)

    async def get_transcript_by_meeting(self, meeting_id: str) -> TranscriptRecord | None:
        return next(
            (t for t in self.transcripts.values() if t.meeting_id == meeting_id),
            None,
        )

    async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
        return self.meetings.get(meeting_id)

    async def get_participants(self, meeting_id: str) -> list[ParticipantRecord]:
        return list(self.participants.get(meeting_id, []))

    async def replace_summary_and_action_items(
        self,
        meeting_id: str,
        content: dict[str, Any],
        items: list[ActionItemCreate],
        model_used: str,
        prompt_version: str,
    ) -> SummaryRecord:
        """All-or-nothing: state is only touched after every check passes."""
        self.calls.append("replace_summary_and_action_items")
        meeting = self.meetings.get(meeting_id)
        if meeting is None:
            raise ResourceNotFoundError("Meeting", meeting_id)
        if self.fail_replace_with is not None:
            raise self.fail_replace_with

        existing = self.summaries.get(meeting_id)
        record = SummaryRecord(
            id=existing.id if existing else str(uuid.uuid4()),
            meeting_id=meeting_id,
            content=content,
            model_used=model_used,
            prompt_version=prompt_version,
            updated_at=datetime.now(timezone.utc),
        )
        self.summaries[meeting_id] = record
        if items:
            self.action_items[meeting_id] = list(items)
        else:
            self.action_items.pop(meeting_id, None)
        self.meetings[meeting_id] = meeting.model_copy(update={"status": MeetingStatus.COMPLETED})
        return record

    async def update_meeting_status(
        self,
        meeting_id: str,
        status: MeetingStatus,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.calls.append(f"status:{MeetingStatus(status).value}")
        meeting = self.meetings.get(meeting_id)
        if meeting is None:
            raise ValueError(f"Meeting not found: {meeting_id}")
        self.meetings[meeting_id] = meeting.model_copy(
            update={
                "status": MeetingStatus(status),
                "metadata": {**meeting.metadata, **(metadata or {})},
            }
        )


class FakeProvider:
    """Scripted ProviderClient double.

    ``outcomes`` is consumed one entry per call: a string becomes the
    completion content, an exception is raised. When exhausted, the last
    string outcome (or ``default_content``) is returned again.
    """

    def __init__(
        self,
        provider: str,
        role: str,
        default_model: str,
        outcomes: list[str | BaseException] | None = None,
        configured: bool = True,
        tokens_per_call: int = 100,
        default_content: str = "{}",
        aliases: tuple[str, ...] = (),
    ) -> None:
        self.provider = provider
        self.display_name = provider.capitalize()
        self.role = role
        self.default_model = default_model
        self.aliases = aliases
        self._configured = configured
        self._outcomes = list(outcomes or [])
        self._tokens_per_call = tokens_per_call
        self._default_content = default_content
        self.calls: list[tuple[str, str, CompletionOptions]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def complete(
        self,
        prompt: str,
        model: str,
        options: CompletionOptions,
    ) -> CompletionResult:
        self.calls.append((prompt, model, options))
        outcome: str | BaseException = (
            self._outcomes.pop(0) if self._outcomes else self._default_content
        )
        if isinstance(outcome, BaseException):
            raise outcome
        self._default_content = outcome
        return CompletionResult(
            content=outcome,
            tokens_used=TokenUsage(
                input=self._tokens_per_call // 2,
                output=self._tokens_per_call - self._tokens_per_call // 2,
                total=self._tokens_per_call,
            ),
            model=model,
            finish_reason="stop",
        )


# ── Response Builders ────────────────────────────────────────────────────────


def make_summary_json(**overrides: Any) -> str:
    data: dict[str, Any] = {
        "executiveSummary": "The team reviewed the launch plan and agreed on dates.",
        "topics": [
            {
                "title": "Launch Plan",
                "summary": "Reviewed the launch checklist.",
                "keyPoints": ["Beta ends Friday", "GA in two weeks"],
            }
        ],
        "actionItems": [
            {
                "text": "Send launch email",
                "assignee": "Alice",
                "dueDate": "tomorrow",
                "priority": "high",
            }
        ],
        "decisions": ["Ship on the 15th"],
        "questions": ["Who owns the press release?"],
        "sentiment": "positive",
    }
    data.update(overrides)
    return json.dumps(data)


def make_chunk_json(**overrides: Any) -> str:
    data: dict[str, Any] = {
        "topics": [{"title": "Budget", "summary": "Discussed budget.", "keyPoints": ["Q3"]}],
        "actionItems": [{"text": "Draft budget", "assignee": None, "priority": "medium"}],
        "decisions": [],
        "questions": [],
    }
    data.update(overrides)
    return json.dumps(data)


def words(count: int, word: str = "word") -> str:
    return " ".join(f"{word}{i}" for i in range(count))


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def config() -> SummarizationConfig:
    return SummarizationConfig()


@pytest.fixture
def repo() -> InMemoryMeetingRepository:
    return InMemoryMeetingRepository()


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """Factory for FakeProvider; defaults follow the production roles."""

    def _make(provider: str = "openai", **kwargs: Any) -> FakeProvider:
        defaults = {
            "anthropic": ("quality", "claude-test", ("claude",)),
            "openai": ("cost", "gpt-test", ("gpt",)),
        }
        role, model, aliases = defaults.get(provider, ("cost", f"{provider}-test", ()))
        kwargs.setdefault("role", role)
        kwargs.setdefault("default_model", model)
        kwargs.setdefault("aliases", aliases)
        return FakeProvider(provider, **kwargs)

    return _make


@pytest.fixture
def make_controller(config, no_sleep) -> Callable[..., FallbackController]:
    def _make(*providers: FakeProvider, cfg: SummarizationConfig | None = None) -> FallbackController:
        registry = ProviderRegistry(providers)
        cfg = cfg or config
        return FallbackController(ModelSelector(registry, cfg), registry, cfg, sleep=no_sleep)

    return _make


@pytest.fixture
def make_processor(repo, config, make_controller) -> Callable[..., SummarizationProcessor]:
    def _make(*providers: FakeProvider, cfg: SummarizationConfig | None = None) -> SummarizationProcessor:
        cfg = cfg or config
        return SummarizationProcessor(repo, repo, make_controller(*providers, cfg=cfg), cfg)

    return _make


@pytest.fixture
def make_insights(repo, make_controller) -> Callable[..., InsightsService]:
    def _make(*providers: FakeProvider) -> InsightsService:
        return InsightsService(repo, make_controller(*providers))

    return _make
