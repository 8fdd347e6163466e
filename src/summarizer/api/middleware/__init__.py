"""API middleware package."""

from src.summarizer.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
