"""Persistence interfaces the summarization engine depends on.

The engine never touches the database directly. MeetingRepository
implements both protocols; tests use in-memory doubles.
"""

from __future__ import annotations

from typing import Any, Protocol

from src.summarizer.meetings.schemas import (
    ActionItemCreate,
    MeetingRecord,
    MeetingStatus,
    ParticipantRecord,
    SummaryRecord,
    TranscriptRecord,
)


class TranscriptReader(Protocol):
    """Read side: transcripts, meetings and participants."""

    async def get_transcript(self, transcript_id: str) -> TranscriptRecord | None: ...

    async def get_transcript_by_meeting(self, meeting_id: str) -> TranscriptRecord | None: ...

    async def get_meeting(self, meeting_id: str) -> MeetingRecord | None: ...

    async def get_participants(self, meeting_id: str) -> list[ParticipantRecord]: ...


class SummaryWriter(Protocol):
    """Write side: the atomic result commit and status updates."""

    async def replace_summary_and_action_items(
        self,
        meeting_id: str,
        content: dict[str, Any],
        items: list[ActionItemCreate],
        model_used: str,
        prompt_version: str,
    ) -> SummaryRecord:
        """Replace action items, upsert the summary and mark the meeting
        completed as one unit of work. Either all of it lands or none of it."""
        ...

    async def update_meeting_status(
        self,
        meeting_id: str,
        status: MeetingStatus,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...
