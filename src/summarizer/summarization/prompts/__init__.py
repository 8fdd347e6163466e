"""Prompt templates for summary, chunk, consolidation, and insight extraction.

All builders are pure string renderers. They never truncate input; callers
chunk long transcripts before calling the chunk-level builders.
"""
