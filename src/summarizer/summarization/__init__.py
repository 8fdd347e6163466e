"""Transcript summarization engine.

Turns a raw meeting transcript into a structured summary and action-item
set: size classification, prompt rendering, model selection, provider
calls with retry and cross-provider fallback, output recovery and
validation, cross-chunk merging, and due-date resolution. The processor
drives one job end to end; the insights service runs single-template
extractions.
"""
