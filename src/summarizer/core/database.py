"""Async SQLAlchemy engine and session plumbing.

Provides:
- Base: Declarative base for all persistence models
- create_engine(): Build an AsyncEngine for a database URL
- make_session_factory(): Session-factory callable consumed by repositories
- init_db() / close_db(): Table creation and engine disposal

The engine is owned by the ServiceContext, not a module global.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase

SessionFactory = Callable[[], AsyncGenerator[AsyncSession, None]]


class Base(DeclarativeBase):
    """Base class for summarizer persistence models."""


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine. Pool sizing only applies to server databases."""
    kwargs: dict[str, Any] = {"echo": echo}
    if not database_url.startswith("sqlite"):
        kwargs.update(pool_size=20, max_overflow=10)
    return create_async_engine(database_url, **kwargs)


def make_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Return an async-generator callable yielding sessions bound to ``engine``."""

    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    return get_session


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist."""
    # Registers the models on Base.metadata.
    from src.summarizer.meetings import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the engine and close all connections."""
    await engine.dispose()
