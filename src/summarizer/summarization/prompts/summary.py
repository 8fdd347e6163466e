"""Summary generation prompts.

Each builder embeds the expected JSON shape directly in the user message
so the model returns parseable, schema-compliant JSON. Transcript text is
wrapped in explicit start/end markers and passed through untouched.

Exports:
    PROMPT_VERSION: Stored alongside every generated summary.
    SUMMARY_OUTPUT_SCHEMA: JSON shape of a full summary.
    CHUNK_OUTPUT_SCHEMA: JSON shape of a per-chunk extraction.
    build_summary_prompt: Single-pass summary of a full transcript.
    build_chunk_prompt: Extraction for one chunk of a long transcript.
    build_consolidation_prompt: Merge chunk extractions into one summary.
    build_action_item_prompt: Thorough action-item-only re-extraction.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from src.summarizer.summarization.schemas import ChunkSummary, TranscriptContext

PROMPT_VERSION = "1.0.0"

SUMMARY_OUTPUT_SCHEMA: str = """\
{
  "executiveSummary": "string (3-5 sentences capturing the essence of the meeting)",
  "topics": [
    {
      "title": "string (topic name)",
      "summary": "string (1-2 sentences)",
      "keyPoints": ["string (key point 1)", "string (key point 2)"]
    }
  ],
  "actionItems": [
    {
      "text": "string (action description)",
      "assignee": "string or null (person responsible)",
      "dueDate": "string or null (ISO date or relative like 'next Monday')",
      "priority": "high | medium | low"
    }
  ],
  "decisions": ["string (decision 1)", "string (decision 2)"],
  "questions": ["string (open question 1)", "string (open question 2)"],
  "sentiment": "positive | neutral | negative | mixed"
}"""

CHUNK_OUTPUT_SCHEMA: str = """\
{
  "topics": [{"title": "string", "summary": "string", "keyPoints": ["string"]}],
  "actionItems": [{"text": "string", "assignee": "string|null", "dueDate": "string|null", "priority": "high|medium|low"}],
  "decisions": ["string"],
  "questions": ["string"],
  "keyQuotes": ["string (notable quotes from this section)"]
}"""

ACTION_ITEMS_OUTPUT_SCHEMA: str = """\
[
  {
    "text": "string",
    "assignee": "string or null",
    "dueDate": "string or null",
    "priority": "high | medium | low",
    "context": "string (brief context from transcript)"
  }
]"""


def _duration_minutes(seconds: int) -> int:
    # Half-up rounding so 90 seconds reads as 2 minutes.
    return int(seconds / 60 + 0.5)


def _metadata_lines(context: TranscriptContext, title_label: str = "Meeting Title") -> list[str]:
    lines: list[str] = []
    if context.meeting_title:
        lines.append(f"{title_label}: {context.meeting_title}")
    if context.participant_names:
        lines.append(f"Participants: {', '.join(context.participant_names)}")
    return lines


def build_summary_prompt(context: TranscriptContext) -> str:
    """Build the single-pass summary prompt for a full transcript.

    Args:
        context: Transcript text plus optional title, participants, duration.

    Returns:
        Prompt string requesting a SummaryOutput-shaped JSON object.
    """
    parts = ["Analyze the following meeting transcript and provide a structured summary.", ""]
    parts.extend(_metadata_lines(context))
    if context.duration_seconds:
        parts.append(f"Duration: {_duration_minutes(context.duration_seconds)} minutes")

    parts.extend(
        [
            "",
            "--- TRANSCRIPT START ---",
            context.full_text,
            "--- TRANSCRIPT END ---",
            "",
            f"Provide your analysis as a JSON object matching this schema:\n{SUMMARY_OUTPUT_SCHEMA}",
            "",
            "Important:",
            "- executiveSummary: 3-5 sentences that someone could read to understand what happened",
            "- topics: Group related discussions (minimum 1, typically 2-5 topics)",
            "- actionItems: Extract all action items with assignee if mentioned. "
            "Infer priority from urgency language.",
            "- decisions: Only firm decisions, not suggestions or possibilities",
            "- questions: Unresolved questions or items needing follow-up",
            "- sentiment: Overall tone of the meeting",
            "",
            "Respond with ONLY the JSON object, no additional text or markdown.",
        ]
    )
    return "\n".join(parts)


def build_chunk_prompt(
    chunk_text: str,
    chunk_index: int,
    total_chunks: int,
    context: TranscriptContext,
) -> str:
    """Build the extraction prompt for one chunk of a long transcript.

    Args:
        chunk_text: The chunk's words, already sized by the caller.
        chunk_index: Zero-based position of the chunk.
        total_chunks: Number of chunks in the transcript.
        context: Meeting metadata; only the title is rendered.

    Returns:
        Prompt string requesting a ChunkSummary-shaped JSON object.
    """
    parts = [f"This is chunk {chunk_index + 1} of {total_chunks} from a meeting transcript.", ""]
    if context.meeting_title:
        parts.append(f"Meeting: {context.meeting_title}")

    parts.extend(
        [
            "",
            "--- CHUNK START ---",
            chunk_text,
            "--- CHUNK END ---",
            "",
            "Extract from this chunk:",
            CHUNK_OUTPUT_SCHEMA,
            "",
            "Respond with ONLY the JSON object.",
        ]
    )
    return "\n".join(parts)


def build_consolidation_prompt(
    chunk_summaries: Sequence[ChunkSummary],
    context: TranscriptContext,
) -> str:
    """Build the prompt that merges chunk extractions into one summary.

    Chunk summaries are serialized in chunk order as camelCase JSON.
    """
    parts = ["Consolidate the following chunk summaries into a single coherent meeting summary.", ""]
    parts.extend(_metadata_lines(context, title_label="Meeting"))

    serialized = json.dumps([s.to_json_dict() for s in chunk_summaries], indent=2)
    parts.extend(
        [
            "",
            "--- CHUNK SUMMARIES ---",
            serialized,
            "--- END CHUNK SUMMARIES ---",
            "",
            "Create a unified summary:",
            "1. Merge and deduplicate topics",
            "2. Combine action items (remove duplicates)",
            "3. Consolidate decisions",
            "4. Merge questions",
            "5. Write a cohesive executive summary covering the entire meeting",
            "6. Determine overall sentiment",
            "",
            f"Output schema:\n{SUMMARY_OUTPUT_SCHEMA}",
            "",
            "Respond with ONLY the JSON object.",
        ]
    )
    return "\n".join(parts)


def build_action_item_prompt(transcript: str) -> str:
    """Build a thorough action-item-only extraction prompt."""
    return "\n".join(
        [
            "Extract ALL action items from this meeting transcript.",
            "",
            "An action item is any task, commitment, or follow-up mentioned.",
            "",
            "--- TRANSCRIPT ---",
            transcript,
            "--- END TRANSCRIPT ---",
            "",
            "For each action item, identify:",
            "1. The specific action to be taken",
            "2. Who is responsible (if mentioned)",
            "3. Any deadline (explicit or implied)",
            "4. Priority (based on urgency language)",
            "",
            "Look for phrases like:",
            '- "I will...", "We need to...", "Someone should..."',
            '- "Action item:", "TODO:", "Follow up on..."',
            '- "By [date]", "Before [event]", "ASAP"',
            "",
            f"Output as JSON array:\n{ACTION_ITEMS_OUTPUT_SCHEMA}",
            "",
            "Respond with ONLY the JSON array.",
        ]
    )
