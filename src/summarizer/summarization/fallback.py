"""Retry with linear backoff, then a single cross-provider fallback.

One generation moves through explicit states:

    ATTEMPTING -> (RETRYING -> ATTEMPTING)* -> SUCCEEDED
                                            -> FALLBACK_ATTEMPTING -> SUCCEEDED | FAILED
                                            -> FAILED

Primary attempts are driven by tenacity. Only retryable LLMApiErrors
(rate limit, unavailable, transport) are retried. The fallback is one
call to the alternate provider, skipped when the caller forced a model.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum

import structlog
from pydantic import Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from src.summarizer.config import SummarizationConfig
from src.summarizer.errors import LLMApiError, SummarizationError
from src.summarizer.summarization.providers import ProviderRegistry
from src.summarizer.summarization.schemas import (
    CompletionOptions,
    CompletionResult,
    ModelSelection,
)
from src.summarizer.summarization.selector import ModelSelector

logger = structlog.get_logger(__name__)

FALLBACK_REASON = "Fallback after primary failure"


class GenerationState(str, Enum):
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    FALLBACK_ATTEMPTING = "fallback_attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class GenerationResult(CompletionResult):
    """A completion plus the selection that produced it and how it got there."""

    selection: ModelSelection
    states: list[GenerationState] = Field(default_factory=list)

    @property
    def attempts(self) -> int:
        """Provider calls made, fallback included."""
        return sum(
            1
            for s in self.states
            if s in (GenerationState.ATTEMPTING, GenerationState.FALLBACK_ATTEMPTING)
        )

    @property
    def used_fallback(self) -> bool:
        return GenerationState.FALLBACK_ATTEMPTING in self.states


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, LLMApiError) and exc.retryable


def _note_states(error: BaseException, states: list[GenerationState]) -> None:
    error.add_note("generation states: " + " -> ".join(s.value for s in states))


class FallbackController:
    """Runs one logical LLM generation with retries and fallback.

    Args:
        selector: Chooses the primary provider/model.
        registry: Source of provider clients and the fallback alternate.
        config: Retry count, delay and default completion options.
        sleep: Awaitable sleep used between retries; tests pass a fake.
    """

    def __init__(
        self,
        selector: ModelSelector,
        registry: ProviderRegistry,
        config: SummarizationConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._selector = selector
        self._registry = registry
        self._config = config
        self._sleep = sleep

    def _resolve_options(self, options: CompletionOptions | None) -> CompletionOptions:
        options = options or CompletionOptions()
        return options.model_copy(
            update={
                "max_tokens": options.max_tokens or self._config.max_tokens,
                "temperature": (
                    options.temperature
                    if options.temperature is not None
                    else self._config.temperature
                ),
            }
        )

    async def _attempt_with_retry(
        self,
        selection: ModelSelection,
        prompt: str,
        options: CompletionOptions,
        states: list[GenerationState],
    ) -> CompletionResult:
        client = self._registry.get(selection.provider)
        max_attempts = max(1, self._config.max_retries)
        delay = self._config.retry_delay

        def before_sleep(retry_state: RetryCallState) -> None:
            states.append(GenerationState.RETRYING)
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "llm_retry",
                provider=selection.provider,
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
                wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
                error=str(exc),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    states.append(GenerationState.ATTEMPTING)
                result = await client.complete(prompt, selection.model, options)
        return result

    async def generate_with_fallback(
        self,
        prompt: str,
        word_count: int,
        options: CompletionOptions | None = None,
        force_model: str | None = None,
    ) -> GenerationResult:
        """Generate a completion for ``prompt``.

        ``word_count`` drives model selection and is the caller's count of
        the transcript (or chunk) the prompt was built from.

        Raises:
            ConfigurationError: If no provider can be selected.
            LLMApiError: The primary provider's last error, when retries
                are exhausted and the fallback is unavailable or fails.
        """
        options = self._resolve_options(options)
        selection = self._selector.select(word_count, force_model)
        states = [GenerationState.ATTEMPTING]

        try:
            completion = await self._attempt_with_retry(selection, prompt, options, states)
        except SummarizationError as primary_error:
            alternate = None if force_model else self._registry.alternate(selection.provider)
            if alternate is None:
                states.append(GenerationState.FAILED)
                _note_states(primary_error, states)
                raise

            states.append(GenerationState.FALLBACK_ATTEMPTING)
            fallback_selection = ModelSelection(
                provider=alternate.provider,
                model=alternate.default_model,
                reason=FALLBACK_REASON,
            )
            logger.warning(
                "llm_fallback_started",
                failed_provider=selection.provider,
                fallback_provider=alternate.provider,
                error=str(primary_error),
            )
            try:
                completion = await alternate.complete(prompt, alternate.default_model, options)
            except SummarizationError as fallback_error:
                logger.error(
                    "llm_fallback_failed",
                    fallback_provider=alternate.provider,
                    error=str(fallback_error),
                )
                states.append(GenerationState.FAILED)
                _note_states(primary_error, states)
                raise primary_error

            states.append(GenerationState.SUCCEEDED)
            return GenerationResult(
                **completion.model_dump(),
                selection=fallback_selection,
                states=states,
            )

        states.append(GenerationState.SUCCEEDED)
        return GenerationResult(
            **completion.model_dump(),
            selection=selection,
            states=states,
        )
