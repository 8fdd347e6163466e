"""Tests for topic, action item and string-list deduplication."""

from __future__ import annotations

from src.summarizer.summarization.merge import (
    deduplicate_strings,
    merge_action_items,
    merge_topics,
    normalize_summary,
)
from src.summarizer.summarization.schemas import ActionItem, SummaryOutput, Topic


class TestMergeActionItems:
    def test_distinct_items_kept_in_order(self):
        items = [ActionItem(text="A"), ActionItem(text="B")]
        assert [i.text for i in merge_action_items(items)] == ["A", "B"]

    def test_duplicates_collapse_case_insensitively(self):
        items = [
            ActionItem(text="Send the deck", priority="low"),
            ActionItem(text="  send THE deck ", assignee="Bob", due_date="Friday", priority="high"),
        ]
        merged = merge_action_items(items)

        assert len(merged) == 1
        assert merged[0].text == "Send the deck"
        assert merged[0].assignee == "Bob"
        assert merged[0].due_date == "Friday"
        assert merged[0].priority == "high"

    def test_first_assignee_wins(self):
        items = [
            ActionItem(text="Ship", assignee="Alice"),
            ActionItem(text="ship", assignee="Bob"),
        ]
        assert merge_action_items(items)[0].assignee == "Alice"

    def test_priority_never_lowered(self):
        items = [ActionItem(text="Ship", priority="high"), ActionItem(text="Ship", priority="low")]
        assert merge_action_items(items)[0].priority == "high"

    def test_inputs_not_mutated(self):
        first = ActionItem(text="Ship")
        merge_action_items([first, ActionItem(text="ship", assignee="Bob")])
        assert first.assignee is None


class TestMergeTopics:
    def test_same_title_merges_summary_and_key_points(self):
        topics = [
            Topic(title="Budget", summary="Part one.", key_points=["Q3", "Hiring"]),
            Topic(title="budget", summary="Part two.", key_points=["hiring", "Q3", "Travel"]),
        ]
        merged = merge_topics(topics)

        assert len(merged) == 1
        assert merged[0].title == "Budget"
        assert merged[0].summary == "Part one. Part two."
        assert merged[0].key_points == ["Q3", "Hiring", "hiring", "Travel"]

    def test_distinct_titles_preserved(self):
        topics = [Topic(title="A", summary="a"), Topic(title="B", summary="b")]
        assert [t.title for t in merge_topics(topics)] == ["A", "B"]

    def test_duplicate_key_points_within_topic_removed(self):
        merged = merge_topics([Topic(title="A", summary="a", key_points=["x", "x"])])
        assert merged[0].key_points == ["x"]


class TestDeduplicateStrings:
    def test_keeps_first_spelling(self):
        assert deduplicate_strings(["Ship it", "ship IT", "Wait"]) == ["Ship it", "Wait"]

    def test_empty(self):
        assert deduplicate_strings([]) == []


class TestNormalizeSummary:
    def test_applies_every_rule(self):
        summary = SummaryOutput(
            executive_summary="x",
            topics=[Topic(title="A", summary="one"), Topic(title="a", summary="two")],
            action_items=[ActionItem(text="Do"), ActionItem(text="do", priority="high")],
            decisions=["Go", "go"],
            questions=["Why?", "why?"],
        )
        normalized = normalize_summary(summary)

        assert len(normalized.topics) == 1
        assert len(normalized.action_items) == 1
        assert normalized.action_items[0].priority == "high"
        assert normalized.decisions == ["Go"]
        assert normalized.questions == ["Why?"]
        assert len(summary.topics) == 2
