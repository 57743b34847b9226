"""Audio helpers for raw speech synthesizer output.

Speech synthesizers return headerless 16-bit little-endian mono PCM. Players
and FFmpeg need a container, so a canonical 44-byte RIFF/WAVE header is
written in front of the samples.
"""

from __future__ import annotations

import struct

from reelforge.errors import ValidationError

WAV_HEADER_SIZE = 44
PCM_CHANNELS = 1
PCM_BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


def wav_header(data_length: int, sample_rate: int) -> bytes:
    """Build the 44-byte WAV header for ``data_length`` bytes of mono 16-bit PCM."""
    if data_length < 0:
        raise ValidationError(f"PCM length must be non-negative, got {data_length}")
    if sample_rate <= 0:
        raise ValidationError(f"Sample rate must be positive, got {sample_rate}")

    block_align = PCM_CHANNELS * PCM_BITS_PER_SAMPLE // 8
    byte_rate = sample_rate * block_align
    return _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_length,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size for PCM
        PCM_FORMAT_TAG,
        PCM_CHANNELS,
        sample_rate,
        byte_rate,
        block_align,
        PCM_BITS_PER_SAMPLE,
        b"data",
        data_length,
    )


def pcm_to_wav(pcm: bytes, sample_rate: int = 24000) -> bytes:
    """Wrap raw PCM samples in a WAV container."""
    return wav_header(len(pcm), sample_rate) + pcm


def pcm_duration(data_length: int, sample_rate: int = 24000) -> float:
    """Duration in seconds of ``data_length`` bytes of mono 16-bit PCM."""
    if sample_rate <= 0:
        raise ValidationError(f"Sample rate must be positive, got {sample_rate}")
    bytes_per_second = sample_rate * PCM_CHANNELS * PCM_BITS_PER_SAMPLE // 8
    return data_length / bytes_per_second


def wav_duration(wav: bytes) -> float:
    """Duration in seconds of a WAV produced by :func:`pcm_to_wav`.

    Raises:
        ValidationError: If the bytes do not start with a PCM WAV header.
    """
    if len(wav) < WAV_HEADER_SIZE:
        raise ValidationError("Audio is shorter than a WAV header")
    fields = _HEADER_STRUCT.unpack(wav[:WAV_HEADER_SIZE])
    riff, _, wave, _, _, _, _, sample_rate, byte_rate, _, _, data_tag, data_length = fields
    if riff != b"RIFF" or wave != b"WAVE" or data_tag != b"data":
        raise ValidationError("Audio is not a canonical PCM WAV file")
    if byte_rate <= 0:
        raise ValidationError(f"Invalid WAV byte rate: {byte_rate}")
    return data_length / byte_rate
