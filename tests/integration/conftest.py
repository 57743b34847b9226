"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import shutil
import struct
import zlib

import pytest


@pytest.fixture(scope="session")
def ffmpeg() -> str:
    """Path to the ffmpeg binary; skips when FFmpeg is not installed."""
    path = shutil.which("ffmpeg")
    if path is None:
        pytest.skip("ffmpeg not installed")
    return path


def solid_png(width: int, height: int, rgb: tuple[int, int, int]) -> bytes:
    """Encode a single-colour RGB PNG."""

    def chunk(tag: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))

    row = b"\x00" + bytes(rgb) * width
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(row * height))
        + chunk(b"IEND", b"")
    )


@pytest.fixture
def frames() -> list[bytes]:
    return [solid_png(90, 160, (16, 42, 67)), solid_png(90, 160, (219, 80, 74))]
