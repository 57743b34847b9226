"""Integration tests for the FFmpeg adapters with a real ffmpeg binary."""

from __future__ import annotations

import pytest

from reelforge.adapters.ffmpeg import FfmpegAudioCompressor, FfmpegVideoRenderer
from reelforge.audio import pcm_to_wav
from reelforge.captions import encode_captions
from reelforge.models.schema import StoryboardSegment, SubtitleStyle, VideoFormat
from reelforge.ports import RenderRequest


@pytest.fixture
def narration_wav() -> bytes:
    """Two seconds of silence at 24 kHz."""
    return pcm_to_wav(b"\x00\x00" * 48000, 24000)


@pytest.mark.integration
class TestFfmpegIntegration:
    """Real compression and rendering."""

    def test_compress_to_mp3(self, ffmpeg: str, narration_wav: bytes) -> None:
        mp3 = FfmpegAudioCompressor(ffmpeg=ffmpeg).compress(narration_wav, 128)

        assert mp3
        assert len(mp3) < len(narration_wav)
        assert mp3[:3] == b"ID3" or mp3[0] == 0xFF

    def test_render_slideshow(self, ffmpeg: str, narration_wav: bytes, frames: list[bytes]) -> None:
        segments = [
            StoryboardSegment(id=1, duration=1.0, script_text="First caption."),
            StoryboardSegment(id=2, duration=1.0, script_text="Second caption."),
        ]
        request = RenderRequest(
            audio=narration_wav,
            audio_format="wav",
            subtitles=encode_captions(segments, SubtitleStyle(), VideoFormat.SHORTS),
            images=frames,
            durations=[1.0, 1.0],
            resolution=(180, 320),
        )

        video = FfmpegVideoRenderer(ffmpeg=ffmpeg, preset="ultrafast").render(request)

        assert video[4:8] == b"ftyp"
