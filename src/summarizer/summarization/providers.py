"""LLM provider clients and the registry that holds them.

Each provider is one ProviderClient instance exposing the same
``complete(prompt, model, options)`` call. Provider-specific behavior
(model prefix, JSON mode support, credentials) lives on the client, so
selection and fallback logic iterate the registry instead of branching
on provider names.

Calls go through ``litellm.acompletion``, which normalizes the Anthropic
and OpenAI wire formats. SDK exceptions are translated to LLMApiError
here; nothing above this module sees litellm exception types.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from typing import Any, Protocol

import litellm
import structlog
from litellm.exceptions import APIConnectionError, Timeout

from src.summarizer.config import Settings
from src.summarizer.errors import ConfigurationError, LLMApiError
from src.summarizer.observability.metrics import track_llm_call
from src.summarizer.summarization.schemas import (
    CompletionOptions,
    CompletionResult,
    ProviderRole,
    TokenUsage,
)

logger = structlog.get_logger(__name__)

ANTHROPIC = "anthropic"
OPENAI = "openai"

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    Timeout,
    APIConnectionError,
    asyncio.TimeoutError,
    ConnectionError,
)


class ProviderClient(Protocol):
    """A single LLM provider the engine can route calls to."""

    provider: str
    display_name: str
    default_model: str
    role: ProviderRole
    aliases: tuple[str, ...]

    @property
    def configured(self) -> bool: ...

    async def complete(
        self,
        prompt: str,
        model: str,
        options: CompletionOptions,
    ) -> CompletionResult: ...


def to_api_error(provider: str, exc: BaseException) -> LLMApiError | None:
    """Translate a provider SDK exception into an LLMApiError.

    Transport failures carry no status (retryable). HTTP failures keep
    their status code. Anything else is not a provider error and returns
    None so the caller re-raises it untouched.
    """
    if isinstance(exc, LLMApiError):
        return exc
    if isinstance(exc, _TRANSPORT_ERRORS):
        return LLMApiError(f"{provider} request failed: {exc}", provider=provider)
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return LLMApiError(
            f"{provider} API error ({status_code}): {exc}",
            provider=provider,
            status_code=status_code,
        )
    return None


class LiteLLMProviderClient:
    """ProviderClient backed by litellm.

    Args:
        provider: Provider id, also the litellm model prefix.
        display_name: Human-readable name used in selection reasons.
        api_key: Credentials; empty means "not configured".
        default_model: Model used when this provider is selected.
        role: "quality" or "cost" routing role.
        default_temperature: Used when options.temperature is None.
        default_max_tokens: Used when options.max_tokens is None.
        timeout: Per-call timeout in seconds handed to the SDK.
        supports_json_mode: Whether to send an OpenAI-style json response_format.
        aliases: Extra names accepted for a forced-model override.
    """

    def __init__(
        self,
        provider: str,
        display_name: str,
        api_key: str,
        default_model: str,
        role: ProviderRole,
        default_temperature: float = 0.3,
        default_max_tokens: int = 4096,
        timeout: float = 60,
        supports_json_mode: bool = False,
        aliases: tuple[str, ...] = (),
    ) -> None:
        self.provider = provider
        self.display_name = display_name
        self.default_model = default_model
        self.role = role
        self.aliases = aliases
        self._api_key = api_key
        self._default_temperature = default_temperature
        self._default_max_tokens = default_max_tokens
        self._timeout = timeout
        self._supports_json_mode = supports_json_mode

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def __repr__(self) -> str:
        return f"LiteLLMProviderClient(provider={self.provider!r}, model={self.default_model!r})"

    def _build_request(self, prompt: str, model: str, options: CompletionOptions) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.append({"role": "user", "content": prompt})

        request: dict[str, Any] = {
            "model": f"{self.provider}/{model}",
            "messages": messages,
            "max_tokens": options.max_tokens or self._default_max_tokens,
            "temperature": (
                options.temperature
                if options.temperature is not None
                else self._default_temperature
            ),
            "api_key": self._api_key,
            "timeout": self._timeout,
        }
        if options.json_mode and self._supports_json_mode:
            request["response_format"] = {"type": "json_object"}
        return request

    async def complete(
        self,
        prompt: str,
        model: str,
        options: CompletionOptions,
    ) -> CompletionResult:
        """Execute one completion call and normalize the response.

        Raises:
            ConfigurationError: If this provider has no credentials.
            LLMApiError: If the provider call fails.
        """
        if not self.configured:
            raise ConfigurationError(f"{self.display_name} API key is not configured")

        logger.info(
            "llm_completion_started",
            provider=self.provider,
            model=model,
            prompt_length=len(prompt),
        )

        async with track_llm_call(self.provider, model) as tracker:
            try:
                response = await litellm.acompletion(**self._build_request(prompt, model, options))
            except Exception as exc:
                api_error = to_api_error(self.provider, exc)
                if api_error is None:
                    raise
                logger.error(
                    "llm_completion_failed",
                    provider=self.provider,
                    model=model,
                    status_code=api_error.status_code,
                    retryable=api_error.retryable,
                )
                raise api_error from exc

            result = _normalize_response(response, model)
            tracker["prompt_tokens"] = result.tokens_used.input
            tracker["completion_tokens"] = result.tokens_used.output

        return result


def _normalize_response(response: Any, requested_model: str) -> CompletionResult:
    """Map a litellm ModelResponse onto CompletionResult."""
    choice = response.choices[0] if response.choices else None
    content = (choice.message.content if choice is not None else None) or ""

    usage = getattr(response, "usage", None)
    input_tokens = (getattr(usage, "prompt_tokens", 0) or 0) if usage else 0
    output_tokens = (getattr(usage, "completion_tokens", 0) or 0) if usage else 0
    total_tokens = (getattr(usage, "total_tokens", 0) or 0) if usage else 0

    return CompletionResult(
        content=content,
        tokens_used=TokenUsage(
            input=input_tokens,
            output=output_tokens,
            total=total_tokens or input_tokens + output_tokens,
        ),
        model=getattr(response, "model", None) or requested_model,
        finish_reason=(getattr(choice, "finish_reason", None) if choice is not None else None)
        or "unknown",
    )


# ── Registry ─────────────────────────────────────────────────────────────────


class ProviderRegistry:
    """Provider clients keyed by provider id.

    Registration order is the fallback preference order.
    """

    def __init__(self, clients: Iterable[ProviderClient] = ()) -> None:
        self._clients: dict[str, ProviderClient] = {}
        for client in clients:
            self.register(client)

    def register(self, client: ProviderClient) -> None:
        if client.provider in self._clients:
            raise ValueError(f"Provider already registered: {client.provider}")
        self._clients[client.provider] = client

    def __iter__(self) -> Iterator[ProviderClient]:
        return iter(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)

    def get(self, provider: str) -> ProviderClient:
        """Look up a provider by id or alias.

        Raises:
            ConfigurationError: If no provider matches.
        """
        key = provider.lower()
        if key in self._clients:
            return self._clients[key]
        for client in self._clients.values():
            if key in client.aliases:
                return client
        raise ConfigurationError(f"Unknown LLM provider: {provider}")

    def configured(self) -> list[ProviderClient]:
        return [c for c in self._clients.values() if c.configured]

    def by_role(self, role: ProviderRole) -> ProviderClient | None:
        """First configured provider with the given routing role."""
        return next((c for c in self.configured() if c.role == role), None)

    def alternate(self, provider: str) -> ProviderClient | None:
        """First configured provider other than ``provider``, for fallback."""
        return next((c for c in self.configured() if c.provider != provider), None)

    async def aclose(self) -> None:
        """Drop client handles. Called once at service shutdown."""
        logger.info("provider_registry_closed", providers=list(self._clients))
        self._clients.clear()


def build_provider_registry(settings: Settings) -> ProviderRegistry:
    """Create the Anthropic (quality) and OpenAI (cost) clients from settings."""
    return ProviderRegistry(
        [
            LiteLLMProviderClient(
                provider=ANTHROPIC,
                display_name="Anthropic",
                api_key=settings.ANTHROPIC_API_KEY,
                default_model=settings.ANTHROPIC_MODEL,
                role="quality",
                default_temperature=settings.LLM_TEMPERATURE,
                default_max_tokens=settings.LLM_MAX_TOKENS,
                timeout=settings.LLM_TIMEOUT,
                supports_json_mode=False,
                aliases=("claude",),
            ),
            LiteLLMProviderClient(
                provider=OPENAI,
                display_name="OpenAI",
                api_key=settings.OPENAI_API_KEY,
                default_model=settings.OPENAI_MODEL,
                role="cost",
                default_temperature=settings.LLM_TEMPERATURE,
                default_max_tokens=settings.LLM_MAX_TOKENS,
                timeout=settings.LLM_TIMEOUT,
                supports_json_mode=True,
                aliases=("gpt",),
            ),
        ]
    )
