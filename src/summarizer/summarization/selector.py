"""Model selection by transcript size and configured providers."""

from __future__ import annotations

import structlog

from src.summarizer.config import SummarizationConfig
from src.summarizer.errors import ConfigurationError
from src.summarizer.summarization.providers import ProviderRegistry
from src.summarizer.summarization.schemas import ModelSelection

logger = structlog.get_logger(__name__)


class ModelSelector:
    """Pick a provider/model for a call.

    Precedence: explicit override, then the single configured provider,
    then the size threshold (quality provider at or above it, cost
    provider below it).
    """

    def __init__(self, registry: ProviderRegistry, config: SummarizationConfig) -> None:
        self._registry = registry
        self._config = config

    def select(self, word_count: int, force_model: str | None = None) -> ModelSelection:
        """Select the provider and model for a transcript of ``word_count`` words.

        Raises:
            ConfigurationError: If no provider is configured, or the
                override names an unknown or unconfigured provider.
        """
        if force_model:
            client = self._registry.get(force_model)
            if not client.configured:
                raise ConfigurationError(f"{client.display_name} API key is not configured")
            selection = ModelSelection(
                provider=client.provider,
                model=client.default_model,
                reason=f"User requested {client.display_name}",
            )
            logger.info("model_selected", **selection.model_dump(), word_count=word_count)
            return selection

        configured = self._registry.configured()
        if not configured:
            raise ConfigurationError("No LLM API keys configured")

        if len(configured) == 1:
            client = configured[0]
            selection = ModelSelection(
                provider=client.provider,
                model=client.default_model,
                reason=f"Only {client.display_name} configured",
            )
            logger.info("model_selected", **selection.model_dump(), word_count=word_count)
            return selection

        threshold = self._config.model_selection_threshold
        if word_count >= threshold:
            client = self._registry.by_role("quality")
            reason = f"Transcript is {word_count} words (>= {threshold}), using {{name}} for quality"
        else:
            client = self._registry.by_role("cost")
            reason = f"Transcript is {word_count} words (< {threshold}), using {{name}} for cost"

        # Both roles should exist when two providers are configured; if one
        # is missing, fall back to registration order.
        if client is None:
            client = configured[0]

        selection = ModelSelection(
            provider=client.provider,
            model=client.default_model,
            reason=reason.format(name=client.display_name),
        )
        logger.info("model_selected", **selection.model_dump(), word_count=word_count)
        return selection
