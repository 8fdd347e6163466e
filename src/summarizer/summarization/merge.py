"""Deterministic deduplication of topics, action items and string lists.

All functions are pure: inputs are never mutated and results are new
model instances.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.summarizer.summarization.schemas import ActionItem, SummaryOutput, Topic

_PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2}


def _key(value: str) -> str:
    return value.lower().strip()


def merge_action_items(items: Iterable[ActionItem]) -> list[ActionItem]:
    """Collapse action items with the same text (case/whitespace-insensitive).

    The first occurrence wins its position. Later duplicates only fill a
    missing assignee or due date, and can only raise the priority.
    """
    merged: dict[str, ActionItem] = {}
    for item in items:
        key = _key(item.text)
        existing = merged.get(key)
        if existing is None:
            merged[key] = item.model_copy()
            continue

        updates: dict[str, object] = {}
        if not existing.assignee and item.assignee:
            updates["assignee"] = item.assignee
        if not existing.due_date and item.due_date:
            updates["due_date"] = item.due_date
        if _PRIORITY_RANK[item.priority] > _PRIORITY_RANK[existing.priority]:
            updates["priority"] = item.priority
        if updates:
            merged[key] = existing.model_copy(update=updates)

    return list(merged.values())


def merge_topics(topics: Iterable[Topic]) -> list[Topic]:
    """Collapse topics with the same title.

    Summaries of duplicates are appended (space-joined) and key points are
    unioned in first-seen order.
    """
    merged: dict[str, Topic] = {}
    for topic in topics:
        key = _key(topic.title)
        existing = merged.get(key)
        if existing is None:
            merged[key] = topic.model_copy(update={"key_points": list(topic.key_points)})
            continue
        merged[key] = existing.model_copy(
            update={
                "summary": f"{existing.summary} {topic.summary}",
                "key_points": existing.key_points + topic.key_points,
            }
        )

    return [
        t.model_copy(update={"key_points": list(dict.fromkeys(t.key_points))})
        for t in merged.values()
    ]


def deduplicate_strings(items: Iterable[str]) -> list[str]:
    """Case-insensitive dedup keeping the first-seen spelling and order."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        key = _key(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def normalize_summary(summary: SummaryOutput) -> SummaryOutput:
    """Apply every merge rule to a parsed summary."""
    return summary.model_copy(
        update={
            "topics": merge_topics(summary.topics),
            "action_items": merge_action_items(summary.action_items),
            "decisions": deduplicate_strings(summary.decisions),
            "questions": deduplicate_strings(summary.questions),
        }
    )
