"""Word counting and word-bounded transcript chunking.

Words are whitespace-delimited tokens. Scripts without spaces (CJK) count
as few, long words; this is accepted and not corrected for.
"""

from __future__ import annotations

DEFAULT_MAX_WORDS_PER_CHUNK = 4000


def count_words(text: str) -> int:
    """Count whitespace-delimited words, ignoring empty tokens."""
    return len(text.split())


def needs_chunking(word_count: int, max_words_per_chunk: int = DEFAULT_MAX_WORDS_PER_CHUNK) -> bool:
    """True iff the transcript is too long for a single pass."""
    return word_count > max_words_per_chunk


def chunk_transcript(text: str, max_words_per_chunk: int = DEFAULT_MAX_WORDS_PER_CHUNK) -> list[str]:
    """Split text into consecutive, non-overlapping word-bounded chunks.

    Every chunk except the last holds exactly ``max_words_per_chunk`` words.
    Words inside a chunk are joined by single spaces, so joining the chunks
    with single spaces reproduces the whitespace-normalized transcript.

    Args:
        text: Full transcript text.
        max_words_per_chunk: Chunk size in words; must be positive.

    Returns:
        List of chunk strings, empty for blank input.
    """
    if max_words_per_chunk < 1:
        raise ValueError("max_words_per_chunk must be positive")

    words = text.split()
    return [
        " ".join(words[i : i + max_words_per_chunk])
        for i in range(0, len(words), max_words_per_chunk)
    ]
