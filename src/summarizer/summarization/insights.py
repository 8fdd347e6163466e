"""Template-driven insight extraction.

One prompt, one generation and one parse per template. No chunking: the
whole transcript is sent as-is.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any, Union

import structlog
from pydantic import ValidationError

from src.summarizer.errors import (
    ResourceNotFoundError,
    SummarizationError,
    TemplateValidationError,
)
from src.summarizer.summarization.collaborators import TranscriptReader
from src.summarizer.summarization.fallback import FallbackController
from src.summarizer.summarization.parser import parse_insight
from src.summarizer.summarization.prompts.insights import (
    BUILT_IN_TEMPLATES,
    build_insight_prompt,
    validate_template,
)
from src.summarizer.summarization.prompts.system import SYSTEM_PROMPT_INSIGHTS
from src.summarizer.summarization.schemas import (
    CompletionOptions,
    InsightBatch,
    InsightExtraction,
    InsightResult,
    InsightTemplate,
)
from src.summarizer.summarization.sizing import count_words

logger = structlog.get_logger(__name__)

TemplateRef = Union[str, InsightTemplate, dict[str, Any]]


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class InsightsService:
    """Extract structured insights from a meeting transcript.

    Args:
        reader: Source of transcripts by meeting id.
        controller: Retry/fallback LLM generation.
        templates: Catalog of named templates; defaults to the built-ins.
    """

    def __init__(
        self,
        reader: TranscriptReader,
        controller: FallbackController,
        templates: Sequence[InsightTemplate] = BUILT_IN_TEMPLATES,
    ) -> None:
        self._reader = reader
        self._controller = controller
        self._templates = {t.id: t for t in templates}

    def get_available_templates(self) -> list[InsightTemplate]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> InsightTemplate | None:
        return self._templates.get(template_id)

    def resolve_template(self, template: TemplateRef) -> InsightTemplate:
        """Turn a catalog id or a user-defined template into an InsightTemplate.

        Raises:
            ResourceNotFoundError: Unknown catalog id.
            TemplateValidationError: User-defined template is invalid.
        """
        if isinstance(template, str):
            found = self.get_template(template)
            if found is None:
                raise ResourceNotFoundError("Template", template)
            return found

        data = template.to_json_dict() if isinstance(template, InsightTemplate) else template
        errors = validate_template(data)
        if errors:
            raise TemplateValidationError(errors)

        try:
            return InsightTemplate(
                id=data["id"],
                name=data["name"],
                description=data.get("description") or "",
                prompt_body=data.get("promptBody", data.get("prompt_body")),
                output_schema=data.get("outputSchema", data.get("output_schema")) or "json",
            )
        except ValidationError as e:
            raise TemplateValidationError(
                [f"{'.'.join(str(p) for p in issue['loc'])}: {issue['msg']}" for issue in e.errors()]
            ) from e

    async def extract_insights(
        self,
        meeting_id: str,
        template: TemplateRef,
        force_model: str | None = None,
    ) -> InsightExtraction:
        """Run one template against a meeting's transcript.

        Raises:
            ResourceNotFoundError: Unknown template id or no transcript.
            TemplateValidationError: Invalid user-defined template.
            SummarizationError: Generation or parse failure.
        """
        start_time = time.perf_counter()
        resolved = self.resolve_template(template)
        logger.info("insight_extraction_started", meeting_id=meeting_id, template_id=resolved.id)

        transcript = await self._reader.get_transcript_by_meeting(meeting_id)
        if transcript is None:
            raise ResourceNotFoundError("Transcript", meeting_id)

        generation = await self._controller.generate_with_fallback(
            build_insight_prompt(resolved, transcript.full_text),
            count_words(transcript.full_text),
            CompletionOptions(system_prompt=SYSTEM_PROMPT_INSIGHTS),
            force_model=force_model,
        )
        result = parse_insight(generation.content, resolved.id, resolved.name)
        processing_time_ms = _elapsed_ms(start_time)

        logger.info(
            "insight_extracted",
            meeting_id=meeting_id,
            template_id=resolved.id,
            tokens_used=generation.tokens_used.total,
            processing_time_ms=processing_time_ms,
        )
        return InsightExtraction(
            result=result,
            tokens_used=generation.tokens_used.total,
            model_used=generation.selection.model,
            processing_time_ms=processing_time_ms,
        )

    async def extract_multiple_insights(
        self,
        meeting_id: str,
        templates: Sequence[TemplateRef],
        force_model: str | None = None,
    ) -> InsightBatch:
        """Run several templates in order. Individual failures are skipped."""
        start_time = time.perf_counter()
        results: list[InsightResult] = []
        total_tokens_used = 0

        for template in templates:
            try:
                extraction = await self.extract_insights(meeting_id, template, force_model)
            except SummarizationError as e:
                logger.warning(
                    "insight_extraction_skipped",
                    meeting_id=meeting_id,
                    template=template if isinstance(template, str) else "custom",
                    error=str(e),
                )
                continue
            results.append(extraction.result)
            total_tokens_used += extraction.tokens_used

        return InsightBatch(
            results=results,
            total_tokens_used=total_tokens_used,
            processing_time_ms=_elapsed_ms(start_time),
        )
