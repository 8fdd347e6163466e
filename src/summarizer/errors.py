"""Error taxonomy for the summarization engine.

Every engine failure is a SummarizationError carrying a stable ``code`` and
a ``retryable`` flag. Only retryable LLMApiErrors are retried locally by the
fallback controller; everything else propagates to the processor, which
marks the job failed and re-raises for the queue to decide on redelivery.
"""

from __future__ import annotations

# Rate-limit and server-unavailable class statuses. 529 is Anthropic's
# "overloaded" status.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504, 529})


class SummarizationError(Exception):
    """Base class for all summarization engine errors."""

    def __init__(self, message: str, code: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable


class ConfigurationError(SummarizationError):
    """No usable LLM provider credentials. Fatal, never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", retryable=False)


class LLMApiError(SummarizationError):
    """A provider call failed.

    ``status_code`` is None for transport failures (timeouts, connection
    resets), which are treated as server-unavailable and therefore retryable.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
    ) -> None:
        retryable = status_code is None or status_code in RETRYABLE_STATUS_CODES
        super().__init__(message, "LLM_API_ERROR", retryable=retryable)
        self.provider = provider
        self.status_code = status_code


class OutputParseError(SummarizationError):
    """Model output could not be recovered or failed schema validation."""

    def __init__(self, message: str, raw_output: str | None = None) -> None:
        super().__init__(message, "OUTPUT_PARSE_ERROR", retryable=False)
        self.raw_output = raw_output


class ResourceNotFoundError(SummarizationError):
    """A transcript, meeting, or template does not exist."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            f"{resource} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            retryable=False,
        )
        self.resource = resource
        self.resource_id = resource_id


class TemplateValidationError(SummarizationError):
    """A user-defined insight template failed validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            f"Invalid insight template: {'; '.join(errors)}",
            "TEMPLATE_VALIDATION_ERROR",
            retryable=False,
        )
        self.errors = errors
