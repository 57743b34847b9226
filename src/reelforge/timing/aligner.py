"""Alignment: rescale storyboard timing to the measured narration audio.

Synthesized voices differ in speaking rate, so word-count estimates drift
from the real audio. Durations are redistributed in proportion to each
segment's non-whitespace character count, and the last segment absorbs
rounding drift so the segments add up to the audio duration exactly.
"""

from __future__ import annotations

import logging
import math

from reelforge.errors import ValidationError
from reelforge.models.schema import StoryboardSegment

logger = logging.getLogger(__name__)

DURATION_DECIMALS = 2
# smallest duration a segment can be given, one caption centisecond
MIN_SEGMENT_DURATION = 0.01


def character_weight(text: str) -> int:
    """Number of non-whitespace characters in ``text``."""
    return sum(1 for ch in text if not ch.isspace())


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``MM:SS.t`` for display."""
    tenths_total = math.floor(seconds * 10 + 1e-6)
    minutes, rem = divmod(tenths_total, 600)
    secs, tenths = divmod(rem, 10)
    return f"{minutes:02d}:{secs:02d}.{tenths}"


def format_time_range(start: float, end: float) -> str:
    """Display string for a segment spanning ``[start, end)``."""
    return f"{format_timestamp(start)} - {format_timestamp(end)}"


def segment_bounds(segments: list[StoryboardSegment]) -> list[tuple[float, float]]:
    """Cumulative ``(start, end)`` of each segment, starting at zero.

    Each start is the previous segment's end, so the bounds are contiguous.
    """
    bounds: list[tuple[float, float]] = []
    current = 0.0
    for seg in segments:
        end = current + seg.duration
        bounds.append((current, end))
        current = end
    return bounds


def align_to_audio(
    segments: list[StoryboardSegment],
    total_duration: float,
) -> list[StoryboardSegment]:
    """Redistribute segment durations to match the audio's total duration.

    Args:
        segments: Storyboard segments in narration order.
        total_duration: Authoritative audio duration in seconds.

    Returns:
        New segments (inputs are not modified) with updated ``duration`` and
        ``time_range``. Durations sum to ``total_duration``.

    Raises:
        ValidationError: If there are no segments or the duration is invalid.

    Note:
        When no segment has any visible characters the duration is split
        equally rather than dividing by a zero weight. Every segment gets at
        least ``MIN_SEGMENT_DURATION`` when the audio is long enough, so a
        short segment next to a long one never collapses to zero.
    """
    if not segments:
        raise ValidationError("Cannot align an empty storyboard")
    if not math.isfinite(total_duration) or total_duration < 0:
        raise ValidationError(f"Invalid audio duration: {total_duration}")

    weights = [character_weight(seg.script_text) for seg in segments]
    total_weight = sum(weights)
    if total_weight == 0:
        logger.warning(
            f"Storyboard has no visible characters; splitting {total_duration:.2f}s equally "
            f"across {len(segments)} segments"
        )
        weights = [1] * len(segments)
        total_weight = len(segments)

    aligned: list[StoryboardSegment] = []
    elapsed = 0.0
    last = len(segments) - 1

    for index, (seg, weight) in enumerate(zip(segments, weights)):
        if index == last:
            duration = max(0.0, total_duration - elapsed)
        else:
            duration = round(weight / total_weight * total_duration, DURATION_DECIMALS)
            duration = max(duration, MIN_SEGMENT_DURATION)
            # every later segment keeps at least the minimum
            reserve = MIN_SEGMENT_DURATION * (last - index)
            duration = max(0.0, min(duration, total_duration - elapsed - reserve))

        start = elapsed
        elapsed = start + duration
        aligned.append(
            seg.model_copy(
                update={"duration": duration, "time_range": format_time_range(start, elapsed)}
            )
        )

    return aligned
