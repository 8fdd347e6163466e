"""Process-wide service context with explicit init and teardown.

ServiceContext owns every long-lived object: the database engine, the
provider registry (client handles reused across jobs), the repository and
the engine services wired on top of them. Build it once per process with
``await ServiceContext.create(settings)`` and release it with ``aclose()``.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from src.summarizer.config import Settings, SummarizationConfig
from src.summarizer.core.database import close_db, create_engine, init_db, make_session_factory
from src.summarizer.meetings.repository import MeetingRepository
from src.summarizer.summarization.fallback import FallbackController
from src.summarizer.summarization.insights import InsightsService
from src.summarizer.summarization.processor import SummarizationProcessor
from src.summarizer.summarization.providers import ProviderRegistry, build_provider_registry
from src.summarizer.summarization.selector import ModelSelector

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    config: SummarizationConfig
    engine: AsyncEngine
    registry: ProviderRegistry
    repository: MeetingRepository
    controller: FallbackController
    processor: SummarizationProcessor
    insights: InsightsService

    @classmethod
    async def create(
        cls,
        settings: Settings,
        registry: ProviderRegistry | None = None,
        create_tables: bool = True,
    ) -> ServiceContext:
        """Wire the service graph.

        Args:
            settings: Application settings.
            registry: Provider registry override; built from settings if omitted.
            create_tables: Run ``init_db`` against the configured database.
        """
        config = settings.summarization_config()
        engine = create_engine(settings.DATABASE_URL)
        if create_tables:
            await init_db(engine)

        registry = registry or build_provider_registry(settings)
        repository = MeetingRepository(make_session_factory(engine))
        controller = FallbackController(ModelSelector(registry, config), registry, config)

        ctx = cls(
            settings=settings,
            config=config,
            engine=engine,
            registry=registry,
            repository=repository,
            controller=controller,
            processor=SummarizationProcessor(repository, repository, controller, config),
            insights=InsightsService(repository, controller),
        )
        logger.info(
            "service_context_created",
            environment=settings.ENVIRONMENT.value,
            providers=[c.provider for c in registry.configured()],
        )
        return ctx

    async def aclose(self) -> None:
        await self.registry.aclose()
        await close_db(self.engine)
        logger.info("service_context_closed")
