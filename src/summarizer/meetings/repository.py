"""Meeting repository: async persistence for the summarization engine.

MeetingRepository implements both engine-facing protocols
(TranscriptReader and SummaryWriter) over SQLAlchemy async sessions, using
the session_factory callable pattern. A job's result is committed by
``replace_summary_and_action_items`` in one transaction. The per-entity
helpers serve the ingestion side and ad-hoc maintenance.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select

from src.summarizer.core.database import SessionFactory
from src.summarizer.errors import ResourceNotFoundError
from src.summarizer.meetings.models import (
    ActionItemModel,
    MeetingModel,
    ParticipantModel,
    SummaryModel,
    TranscriptModel,
)
from src.summarizer.meetings.schemas import (
    ActionItemCreate,
    ActionItemRecord,
    MeetingRecord,
    MeetingStatus,
    ParticipantRecord,
    SummaryRecord,
    TranscriptRecord,
)

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_meeting(model: MeetingModel) -> MeetingRecord:
    return MeetingRecord(
        id=model.id,
        title=model.title,
        duration_seconds=model.duration_seconds,
        status=MeetingStatus(model.status),
        metadata=model.metadata_data or {},
    )


def _model_to_transcript(model: TranscriptModel) -> TranscriptRecord:
    return TranscriptRecord(id=model.id, meeting_id=model.meeting_id, full_text=model.full_text or "")


def _model_to_summary(model: SummaryModel) -> SummaryRecord:
    return SummaryRecord(
        id=model.id,
        meeting_id=model.meeting_id,
        content=model.content or {},
        model_used=model.model_used,
        prompt_version=model.prompt_version,
        updated_at=model.updated_at or model.created_at,
    )


def _model_to_action_item(model: ActionItemModel) -> ActionItemRecord:
    return ActionItemRecord(
        id=model.id,
        meeting_id=model.meeting_id,
        text=model.text,
        assignee=model.assignee,
        due_date=model.due_date,
        priority=model.priority,
        completed=model.completed,
    )


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async CRUD for meetings, transcripts, summaries and action items.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    # ── Meetings ─────────────────────────────────────────────────────────

    async def create_meeting(
        self,
        title: str | None = None,
        duration_seconds: int | None = None,
        participants: list[ParticipantRecord] | None = None,
    ) -> MeetingRecord:
        async for session in self._session_factory():
            model = MeetingModel(
                title=title,
                duration_seconds=duration_seconds,
                status=MeetingStatus.PENDING.value,
                metadata_data={},
            )
            session.add(model)
            await session.flush()
            for participant in participants or []:
                session.add(
                    ParticipantModel(
                        meeting_id=model.id,
                        name=participant.name,
                        email=participant.email,
                    )
                )
            await session.commit()
            await session.refresh(model)
            return _model_to_meeting(model)

    async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
        async for session in self._session_factory():
            model = await session.get(MeetingModel, meeting_id)
            if model is None:
                return None
            return _model_to_meeting(model)

    async def get_participants(self, meeting_id: str) -> list[ParticipantRecord]:
        async for session in self._session_factory():
            stmt = select(ParticipantModel).where(ParticipantModel.meeting_id == meeting_id)
            result = await session.execute(stmt)
            return [
                ParticipantRecord(name=p.name, email=p.email) for p in result.scalars().all()
            ]

    async def update_meeting_status(
        self,
        meeting_id: str,
        status: MeetingStatus,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Set a meeting's status, merging ``metadata`` into what is stored.

        Raises:
            ResourceNotFoundError: If the meeting does not exist.
        """
        async for session in self._session_factory():
            model = await session.get(MeetingModel, meeting_id)
            if model is None:
                raise ResourceNotFoundError("Meeting", meeting_id)

            model.status = MeetingStatus(status).value
            if metadata is not None:
                model.metadata_data = {**(model.metadata_data or {}), **metadata}
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            logger.info("meeting_status_updated", meeting_id=meeting_id, status=model.status)

    # ── Transcripts ──────────────────────────────────────────────────────

    async def create_transcript(self, meeting_id: str, full_text: str) -> TranscriptRecord:
        async for session in self._session_factory():
            model = TranscriptModel(meeting_id=meeting_id, full_text=full_text)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_transcript(model)

    async def get_transcript(self, transcript_id: str) -> TranscriptRecord | None:
        async for session in self._session_factory():
            model = await session.get(TranscriptModel, transcript_id)
            if model is None:
                return None
            return _model_to_transcript(model)

    async def get_transcript_by_meeting(self, meeting_id: str) -> TranscriptRecord | None:
        """Most recent transcript for a meeting."""
        async for session in self._session_factory():
            stmt = (
                select(TranscriptModel)
                .where(TranscriptModel.meeting_id == meeting_id)
                .order_by(TranscriptModel.created_at.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_transcript(model)

    # ── Summaries ────────────────────────────────────────────────────────

    async def upsert_summary(
        self,
        meeting_id: str,
        content: dict[str, Any],
        model_used: str,
        prompt_version: str,
    ) -> SummaryRecord:
        """Insert or replace the summary for a meeting (keyed by meeting id)."""
        async for session in self._session_factory():
            stmt = select(SummaryModel).where(SummaryModel.meeting_id == meeting_id)
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()

            if model is None:
                model = SummaryModel(meeting_id=meeting_id)
                session.add(model)

            model.content = content
            model.model_used = model_used
            model.prompt_version = prompt_version
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(model)
            return _model_to_summary(model)

    async def get_summary(self, meeting_id: str) -> SummaryRecord | None:
        async for session in self._session_factory():
            stmt = select(SummaryModel).where(SummaryModel.meeting_id == meeting_id)
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_summary(model)

    # ── Action Items ─────────────────────────────────────────────────────

    async def delete_action_items_by_meeting(self, meeting_id: str) -> int:
        async for session in self._session_factory():
            result = await session.execute(
                delete(ActionItemModel).where(ActionItemModel.meeting_id == meeting_id)
            )
            await session.commit()
            return result.rowcount or 0

    async def create_action_items(self, items: list[ActionItemCreate]) -> int:
        if not items:
            return 0
        async for session in self._session_factory():
            session.add_all(
                ActionItemModel(
                    meeting_id=item.meeting_id,
                    text=item.text,
                    assignee=item.assignee,
                    due_date=item.due_date,
                    priority=item.priority,
                )
                for item in items
            )
            await session.commit()
            return len(items)

    # ── Job Result ───────────────────────────────────────────────────────

    async def replace_summary_and_action_items(
        self,
        meeting_id: str,
        content: dict[str, Any],
        items: list[ActionItemCreate],
        model_used: str,
        prompt_version: str,
    ) -> SummaryRecord:
        """Persist a finished summarization in a single transaction.

        Deletes the meeting's action items, inserts ``items``, upserts the
        summary and marks the meeting completed. Any failure rolls back
        all four, leaving the previous result intact.

        Raises:
            ResourceNotFoundError: If the meeting does not exist.
        """
        async for session in self._session_factory():
            async with session.begin():
                meeting = await session.get(MeetingModel, meeting_id)
                if meeting is None:
                    raise ResourceNotFoundError("Meeting", meeting_id)

                await session.execute(
                    delete(ActionItemModel).where(ActionItemModel.meeting_id == meeting_id)
                )
                session.add_all(
                    ActionItemModel(
                        meeting_id=meeting_id,
                        text=item.text,
                        assignee=item.assignee,
                        due_date=item.due_date,
                        priority=item.priority,
                    )
                    for item in items
                )

                result = await session.execute(
                    select(SummaryModel).where(SummaryModel.meeting_id == meeting_id)
                )
                summary = result.scalar_one_or_none()
                if summary is None:
                    summary = SummaryModel(meeting_id=meeting_id)
                    session.add(summary)

                now = datetime.now(timezone.utc)
                summary.content = content
                summary.model_used = model_used
                summary.prompt_version = prompt_version
                summary.updated_at = now

                meeting.status = MeetingStatus.COMPLETED.value
                meeting.updated_at = now

            await session.refresh(summary)
            logger.info(
                "summary_persisted",
                meeting_id=meeting_id,
                summary_id=summary.id,
                action_item_count=len(items),
            )
            return _model_to_summary(summary)

    async def get_action_items(self, meeting_id: str) -> list[ActionItemRecord]:
        async for session in self._session_factory():
            stmt = (
                select(ActionItemModel)
                .where(ActionItemModel.meeting_id == meeting_id)
                .order_by(ActionItemModel.created_at)
            )
            result = await session.execute(stmt)
            return [_model_to_action_item(m) for m in result.scalars().all()]
