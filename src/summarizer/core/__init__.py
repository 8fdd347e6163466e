"""Core infrastructure: logging, database engine, and the service context."""
