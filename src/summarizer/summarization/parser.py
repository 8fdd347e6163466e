"""Recover and validate structured JSON from raw model output.

Exports:
    extract_json: Best-effort JSON recovery from fenced or chatty output.
    parse_summary: Validate a full SummaryOutput.
    parse_chunk_summary: Validate a per-chunk ChunkSummary.
    parse_action_items: Validate an action-item-only extraction.
    parse_insight: Accept any JSON object as an insight payload.
    create_empty_summary: Placeholder summary for display fallbacks.
    sanitize_action_item: Trim an action item's text fields.

Every failure raises OutputParseError carrying the raw text.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from src.summarizer.errors import OutputParseError
from src.summarizer.summarization.schemas import (
    ActionItem,
    ChunkSummary,
    ExtractedActionItem,
    InsightResult,
    SummaryOutput,
    Topic,
)

logger = structlog.get_logger(__name__)

_RAW_LOG_LIMIT = 500
_decoder = json.JSONDecoder()
_action_items_adapter = TypeAdapter(list[ExtractedActionItem])


def _strip_fences(raw_output: str) -> str:
    text = raw_output.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _format_issues(error: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    )


def extract_json(raw_output: str) -> Any:
    """Parse JSON out of model output.

    Strips code fences, tries the whole text, then falls back to the first
    balanced ``{...}`` or ``[...]`` span that decodes.

    Raises:
        OutputParseError: If no JSON value can be recovered.
    """
    text = _strip_fences(raw_output)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for index, char in enumerate(text):
        if char not in "{[":
            continue
        try:
            value, _ = _decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            continue
        return value

    logger.error("json_extraction_failed", raw_output=raw_output[:_RAW_LOG_LIMIT])
    raise OutputParseError("Could not parse JSON from LLM output", raw_output)


def parse_summary(raw_output: str) -> SummaryOutput:
    """Validate a full summary. Requires executiveSummary and at least one topic."""
    data = extract_json(raw_output)
    try:
        return SummaryOutput.model_validate(data)
    except ValidationError as e:
        issues = _format_issues(e)
        logger.error(
            "summary_validation_failed",
            issues=issues,
            raw_output=raw_output[:_RAW_LOG_LIMIT],
        )
        raise OutputParseError(f"Invalid summary format: {issues}", raw_output) from e


def parse_chunk_summary(raw_output: str) -> ChunkSummary:
    data = extract_json(raw_output)
    try:
        return ChunkSummary.model_validate(data)
    except ValidationError as e:
        issues = _format_issues(e)
        logger.error("chunk_summary_validation_failed", issues=issues)
        raise OutputParseError(f"Invalid chunk summary format: {issues}", raw_output) from e


def parse_action_items(raw_output: str) -> list[ExtractedActionItem]:
    """Validate an action-item-only extraction.

    Accepts a bare array or an object with an ``actionItems`` key. Each
    item must carry a valid priority; it is never defaulted here.
    """
    data = extract_json(raw_output)
    if isinstance(data, dict):
        data = data.get("actionItems") or []
    try:
        return _action_items_adapter.validate_python(data)
    except ValidationError as e:
        issues = _format_issues(e)
        logger.error("action_items_validation_failed", issues=issues)
        raise OutputParseError(f"Invalid action items format: {issues}", raw_output) from e


def parse_insight(raw_output: str, template_id: str, template_name: str) -> InsightResult:
    """Wrap an insight payload. Any JSON object is accepted, arrays are not."""
    data = extract_json(raw_output)
    if not isinstance(data, dict):
        logger.error("insight_validation_failed", template_id=template_id)
        raise OutputParseError("Invalid insight format", raw_output)
    return InsightResult(template_id=template_id, template_name=template_name, content=data)


def create_empty_summary() -> SummaryOutput:
    """A schema-valid placeholder for when generation could not produce one."""
    return SummaryOutput(
        executive_summary="Summary generation failed. Please try again.",
        topics=[
            Topic(
                title="Unable to Generate",
                summary="The summary could not be generated.",
                key_points=[],
            )
        ],
        sentiment="neutral",
    )


def sanitize_action_item(item: ActionItem) -> ActionItem:
    """Trim text, assignee and due date; blank optionals become absent."""
    return item.model_copy(
        update={
            "text": item.text.strip(),
            "assignee": (item.assignee or "").strip() or None,
            "due_date": (item.due_date or "").strip() or None,
        }
    )
