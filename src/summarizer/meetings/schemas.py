"""Pydantic v2 schemas for the persisted meeting entities.

These are the records the repository hands to (and accepts from) the
summarization engine. Field names mirror the SQLAlchemy models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.summarizer.summarization.schemas import Priority


class MeetingStatus(str, Enum):
    """Lifecycle status of a meeting's summarization."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class MeetingRecord(BaseModel):
    id: str
    title: str | None = None
    duration_seconds: int | None = None
    status: MeetingStatus = MeetingStatus.PENDING
    metadata: dict[str, Any] = Field(default_factory=dict)


class ParticipantRecord(BaseModel):
    name: str
    email: str | None = None


class TranscriptRecord(BaseModel):
    id: str
    meeting_id: str
    full_text: str = ""


class SummaryRecord(BaseModel):
    id: str
    meeting_id: str
    content: dict[str, Any]
    model_used: str
    prompt_version: str
    updated_at: datetime | None = None


class ActionItemCreate(BaseModel):
    """An action item ready for persistence, due date already resolved."""

    meeting_id: str
    text: str
    assignee: str | None = None
    due_date: datetime | None = None
    priority: Priority = "medium"


class ActionItemRecord(ActionItemCreate):
    id: str
    completed: bool = False
