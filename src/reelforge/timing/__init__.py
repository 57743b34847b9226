"""Timing algorithms: script chunking and audio alignment."""

from reelforge.timing.aligner import align_to_audio, format_time_range, segment_bounds
from reelforge.timing.chunker import chunk_script, normalize_script

__all__ = [
    "align_to_audio",
    "chunk_script",
    "format_time_range",
    "normalize_script",
    "segment_bounds",
]
