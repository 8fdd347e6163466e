"""Pydantic v2 schemas for the summarization engine.

Defines the data contracts that flow through the engine: transcript
context, model selection and completion results, the canonical summary
output with its topics and action items, transient chunk summaries,
insight templates/results, and the job payload/result exchanged with the
external queue.

Summary-shaped models use camelCase aliases because that is the JSON shape
the prompts request from the model and the shape stored as summary content.
Python code uses the snake_case field names.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["high", "medium", "low"]
Sentiment = Literal["positive", "neutral", "negative", "mixed"]
OutputSchema = Literal["text", "list", "table", "json"]
ProviderRole = Literal["quality", "cost"]


class CamelModel(BaseModel):
    """Base for models exchanged with the LLM as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, omitting absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Transcript Context ───────────────────────────────────────────────────────


class TranscriptContext(BaseModel):
    """Everything the prompt builders know about one meeting. Built once per job."""

    model_config = ConfigDict(frozen=True)

    full_text: str
    meeting_title: str | None = None
    participant_names: tuple[str, ...] = ()
    duration_seconds: int | None = None


# ── LLM Call Models ──────────────────────────────────────────────────────────


class ModelSelection(BaseModel):
    """Which provider/model handles a call, and why (provenance)."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    reason: str


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0
    total: int = 0


class CompletionResult(BaseModel):
    """Normalized response of a single provider call."""

    content: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    model: str
    finish_reason: str = "unknown"


class CompletionOptions(BaseModel):
    """Per-call options handed to a provider client.

    None for max_tokens/temperature means "use the engine default".
    """

    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None
    json_mode: bool = True


# ── Summary Models ───────────────────────────────────────────────────────────


def _blank_to_none(value: Any) -> Any:
    # Models emit null, "" or "null" for unknown owners/dates; all mean absent.
    if value is None:
        return None
    if isinstance(value, str) and (not value.strip() or value.strip().lower() == "null"):
        return None
    return value


class Topic(CamelModel):
    """A discussion topic with its summary and key points."""

    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    key_points: list[str] = Field(default_factory=list)


class ActionItem(CamelModel):
    """An action item. ``due_date`` is the raw phrase as the model wrote it."""

    text: str = Field(min_length=1)
    assignee: str | None = None
    due_date: str | None = None
    priority: Priority = "medium"

    @field_validator("assignee", "due_date", mode="before")
    @classmethod
    def _absent_when_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ExtractedActionItem(ActionItem):
    """Action item from the dedicated re-extraction prompt.

    Priority is mandatory here; a missing or unknown value is rejected.
    """

    priority: Priority
    context: str | None = None


class SummaryOutput(CamelModel):
    """Canonical engine output. Always carries at least one topic."""

    executive_summary: str = Field(min_length=1)
    topics: list[Topic] = Field(min_length=1)
    action_items: list[ActionItem] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    sentiment: Sentiment = "neutral"


class ChunkSummary(CamelModel):
    """Partial extraction for one chunk; discarded after consolidation."""

    topics: list[Topic] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    key_quotes: list[str] | None = None


# ── Insight Models ───────────────────────────────────────────────────────────


class InsightTemplate(CamelModel):
    """A named prompt configuration for one non-summary extraction."""

    id: str
    name: str
    description: str
    prompt_body: str
    output_schema: OutputSchema = "json"


class InsightResult(CamelModel):
    template_id: str
    template_name: str
    content: Any


class InsightExtraction(BaseModel):
    """One insight result plus call metadata."""

    result: InsightResult
    tokens_used: int
    model_used: str
    processing_time_ms: int


class InsightBatch(BaseModel):
    results: list[InsightResult] = Field(default_factory=list)
    total_tokens_used: int = 0
    processing_time_ms: int = 0


# ── Job Contract ─────────────────────────────────────────────────────────────


class SummarizationJob(CamelModel):
    """Inbound job payload delivered by the queue."""

    meeting_id: str
    transcript_id: str
    prompt_version: str | None = None
    custom_prompt: str | None = None
    force_model: str | None = None
    regenerate: bool = False


class SummarizationResult(CamelModel):
    """Outbound success result returned to the queue."""

    meeting_id: str
    summary_id: str
    action_item_count: int
    tokens_used: int
    model_used: str
    processing_time_ms: int
