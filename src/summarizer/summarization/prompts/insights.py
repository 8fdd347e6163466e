"""Insight extraction templates and prompt builder.

Exports:
    BUILT_IN_TEMPLATES: Static catalog of insight templates.
    build_insight_prompt: Render a template against a transcript.
    get_built_in_template: Catalog lookup by id.
    validate_template: Validation errors for a user-defined template.
"""

from __future__ import annotations

from typing import Any

from src.summarizer.summarization.schemas import InsightTemplate

_OUTPUT_SCHEMAS = ("text", "list", "table", "json")
_MIN_PROMPT_LENGTH = 10

BUILT_IN_TEMPLATES: list[InsightTemplate] = [
    InsightTemplate(
        id="sales_signals",
        name="Sales Signals",
        description="Extract buying signals, objections, and next steps from sales calls",
        prompt_body="""\
Analyze this sales meeting and extract:
1. Buying signals (positive indicators of interest)
2. Objections or concerns raised
3. Competitor mentions
4. Budget/timeline discussions
5. Next steps and commitments

Output as JSON:
{
  "buyingSignals": ["string"],
  "objections": [{"concern": "string", "addressed": boolean}],
  "competitorMentions": ["string"],
  "budgetTimeline": {"budget": "string or null", "timeline": "string or null"},
  "nextSteps": ["string"],
  "dealScore": 1-10
}""",
        output_schema="json",
    ),
    InsightTemplate(
        id="interview_notes",
        name="Interview Notes",
        description="Extract key points from candidate interviews",
        prompt_body="""\
Analyze this interview and extract:
1. Key skills and experience discussed
2. Candidate strengths mentioned
3. Areas of concern or gaps
4. Cultural fit indicators
5. Questions candidate asked

Output as JSON:
{
  "skillsDiscussed": ["string"],
  "strengths": ["string"],
  "concerns": ["string"],
  "culturalFitNotes": "string",
  "candidateQuestions": ["string"],
  "recommendation": "strong yes | yes | maybe | no | strong no"
}""",
        output_schema="json",
    ),
    InsightTemplate(
        id="project_status",
        name="Project Status",
        description="Extract project status, blockers, and updates",
        prompt_body="""\
Analyze this project meeting and extract:
1. Current project status
2. Completed items since last update
3. In-progress work
4. Blockers and risks
5. Upcoming milestones

Output as JSON:
{
  "overallStatus": "on track | at risk | delayed | ahead",
  "completed": ["string"],
  "inProgress": ["string"],
  "blockers": [{"issue": "string", "owner": "string or null", "severity": "high | medium | low"}],
  "risks": ["string"],
  "nextMilestone": {"name": "string", "date": "string or null"}
}""",
        output_schema="json",
    ),
    InsightTemplate(
        id="customer_feedback",
        name="Customer Feedback",
        description="Extract feature requests and feedback from customer calls",
        prompt_body="""\
Analyze this customer meeting and extract:
1. Feature requests or enhancement ideas
2. Pain points mentioned
3. Positive feedback
4. Competitor comparisons
5. Success metrics discussed

Output as JSON:
{
  "featureRequests": [{"request": "string", "priority": "high | medium | low", "reason": "string"}],
  "painPoints": ["string"],
  "positiveFeedback": ["string"],
  "competitorMentions": ["string"],
  "successMetrics": ["string"],
  "customerSentiment": "promoter | passive | detractor"
}""",
        output_schema="json",
    ),
    InsightTemplate(
        id="meeting_effectiveness",
        name="Meeting Effectiveness",
        description="Analyze meeting efficiency and participation",
        prompt_body="""\
Analyze this meeting for effectiveness:
1. Was there a clear agenda?
2. Were objectives achieved?
3. How was participation distributed?
4. Were there clear outcomes?
5. Could this have been an email?

Output as JSON:
{
  "hadClearAgenda": boolean,
  "objectivesAchieved": "yes | partial | no | unclear",
  "participationBalance": "balanced | moderately balanced | dominated by few",
  "clearOutcomes": boolean,
  "couldBeEmail": boolean,
  "effectivenessScore": 1-10,
  "suggestions": ["string"]
}""",
        output_schema="json",
    ),
]


def build_insight_prompt(template: InsightTemplate, transcript: str) -> str:
    """Render a template: description, transcript, then the template instruction."""
    return (
        f"{template.description}\n\n"
        "--- TRANSCRIPT ---\n"
        f"{transcript}\n"
        "--- END TRANSCRIPT ---\n\n"
        f"{template.prompt_body}\n\n"
        "Respond with ONLY the requested output format, no additional text."
    )


def get_built_in_template(template_id: str) -> InsightTemplate | None:
    return next((t for t in BUILT_IN_TEMPLATES if t.id == template_id), None)


def validate_template(data: dict[str, Any]) -> list[str]:
    """Check a user-defined template payload.

    Accepts camelCase or snake_case keys (``promptBody``/``prompt_body``,
    ``outputSchema``/``output_schema``).

    Returns:
        List of human-readable errors; empty when the template is valid.
    """
    errors: list[str] = []

    template_id = data.get("id")
    if not template_id:
        errors.append("Template ID is required")
    elif not isinstance(template_id, str):
        errors.append("Template ID must be a string")

    name = data.get("name")
    if not name:
        errors.append("Template name is required")
    elif not isinstance(name, str):
        errors.append("Template name must be a string")

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        errors.append("Template description must be a string")

    prompt_body = data.get("promptBody", data.get("prompt_body")) or ""
    if not isinstance(prompt_body, str):
        errors.append("Template prompt must be a string")
    elif len(prompt_body) < _MIN_PROMPT_LENGTH:
        errors.append(f"Template prompt must be at least {_MIN_PROMPT_LENGTH} characters")

    output_schema = data.get("outputSchema", data.get("output_schema"))
    if output_schema is not None and output_schema not in _OUTPUT_SCHEMAS:
        errors.append(f"Output schema must be one of: {', '.join(_OUTPUT_SCHEMAS)}")

    return errors
