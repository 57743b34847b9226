"""Script chunking: split narration into blocks sized for one visual each.

Words are accumulated left to right and a chunk is closed when

- its estimated duration reaches the band maximum (run-on sentences are
  force-split here regardless of punctuation), or
- it has reached the band minimum and the last word ends a sentence, or
- the input is exhausted (the tail is flushed even when short).

At the default 2.5 words/second a 9-18s band is roughly 22-45 words.
"""

from __future__ import annotations

import logging

from reelforge.errors import ValidationError
from reelforge.models.schema import ScriptChunk

logger = logging.getLogger(__name__)

WORDS_PER_SECOND = 2.5
MIN_CHUNK_SECONDS = 9.0
MAX_CHUNK_SECONDS = 18.0

SENTENCE_TERMINALS = (".", "!", "?")


def normalize_script(text: str) -> str:
    """Collapse all whitespace runs to single spaces and trim the ends."""
    return " ".join(text.split())


def _make_chunk(chunk_id: int, words: list[str], words_per_second: float) -> ScriptChunk:
    return ScriptChunk(
        id=chunk_id,
        text=" ".join(words),
        word_count=len(words),
        duration_estimate=round(len(words) / words_per_second, 2),
    )


def chunk_script(
    text: str,
    words_per_second: float = WORDS_PER_SECOND,
    min_seconds: float = MIN_CHUNK_SECONDS,
    max_seconds: float = MAX_CHUNK_SECONDS,
) -> list[ScriptChunk]:
    """Partition narration into ordered, timed chunks.

    Args:
        text: Narration text. Whitespace is normalized before splitting.
        words_per_second: Speaking rate used for duration estimates.
        min_seconds: Earliest duration at which a sentence end closes a chunk.
        max_seconds: Duration at which a chunk is closed unconditionally.

    Returns:
        Chunks whose texts, joined with single spaces, equal
        ``normalize_script(text)``. Empty input yields an empty list.

    Raises:
        ValidationError: If the rate or band is not usable.
    """
    if words_per_second <= 0:
        raise ValidationError(f"words_per_second must be positive, got {words_per_second}")
    if max_seconds <= 0 or min_seconds > max_seconds:
        raise ValidationError(
            f"Invalid chunk band: min={min_seconds}s max={max_seconds}s"
        )

    words = text.split()
    chunks: list[ScriptChunk] = []
    current: list[str] = []

    for index, word in enumerate(words):
        current.append(word)
        duration = len(current) / words_per_second

        reached_max = duration >= max_seconds
        sentence_end = word.endswith(SENTENCE_TERMINALS) and duration >= min_seconds
        last_word = index == len(words) - 1

        if reached_max or sentence_end or last_word:
            chunks.append(_make_chunk(len(chunks) + 1, current, words_per_second))
            current = []

    logger.debug(f"Chunked {len(words)} words into {len(chunks)} chunks")
    return chunks
