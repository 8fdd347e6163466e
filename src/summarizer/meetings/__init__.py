"""Meeting persistence -- SQLAlchemy models and the repository that backs
the summarization engine's read and write collaborators.
"""
