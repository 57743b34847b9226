"""FFmpeg-backed audio compression and video rendering.

Both adapters shell out to the ``ffmpeg`` binary inside a scratch directory,
so inputs and outputs travel as bytes and nothing is left on disk.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from pathlib import Path

from reelforge.errors import CollaboratorError
from reelforge.ports import AudioCompressor, RenderRequest, VideoRenderer

logger = logging.getLogger(__name__)

FFMPEG_MISSING = (
    "ffmpeg not found. Please install FFmpeg:\n"
    "  Ubuntu/Debian: sudo apt install ffmpeg\n"
    "  macOS: brew install ffmpeg\n"
    "  Windows: choco install ffmpeg"
)


def run_ffmpeg(cmd: list[str], timeout: float, what: str, cwd: Path | None = None) -> None:
    """Run an ffmpeg command, raising CollaboratorError on any failure."""
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, cwd=cwd)
    except FileNotFoundError:
        raise CollaboratorError(FFMPEG_MISSING)
    except subprocess.TimeoutExpired:
        raise CollaboratorError(f"{what} timed out after {timeout:.0f}s")

    if result.returncode != 0:
        raise CollaboratorError(f"{what} failed: {result.stderr.strip()[-400:]}")


class FfmpegAudioCompressor(AudioCompressor):
    """Compress WAV narration to mono 44.1 kHz MP3 with libmp3lame."""

    format = "mp3"

    def __init__(self, ffmpeg: str = "ffmpeg", timeout: float = 120.0) -> None:
        self.ffmpeg = ffmpeg
        self.timeout = timeout

    def build_command(self, source: Path, output: Path, bitrate_kbps: int) -> list[str]:
        return [
            self.ffmpeg,
            "-y",
            "-i", str(source),
            "-codec:a", "libmp3lame",
            "-b:a", f"{bitrate_kbps}k",
            "-ar", "44100",
            "-ac", "1",
            str(output),
        ]

    def compress(self, wav: bytes, bitrate_kbps: int) -> bytes:
        start_time = time.perf_counter()
        with tempfile.TemporaryDirectory(prefix="reelforge_") as tmp:
            source = Path(tmp) / "input.wav"
            output = Path(tmp) / f"output.{self.format}"
            source.write_bytes(wav)

            run_ffmpeg(self.build_command(source, output, bitrate_kbps), self.timeout, "Audio compression")
            if not output.exists():
                raise CollaboratorError(f"Audio compression produced no output: {output.name}")
            data = output.read_bytes()

        elapsed = time.perf_counter() - start_time
        logger.info(f"Compressed {len(wav)} -> {len(data)} bytes in {elapsed:.1f}s")
        return data


class FfmpegVideoRenderer(VideoRenderer):
    """Render a slideshow video with burned-in ASS captions.

    Each image is shown for its segment's duration via the concat demuxer,
    scaled and cropped to fill the target resolution.
    """

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        timeout: float = 900.0,
        fps: int = 30,
        preset: str = "medium",
    ) -> None:
        self.ffmpeg = ffmpeg
        self.timeout = timeout
        self.fps = fps
        self.preset = preset

    @staticmethod
    def write_concat_list(path: Path, images: list[Path], durations: list[float]) -> None:
        lines = ["ffconcat version 1.0"]
        for image, duration in zip(images, durations):
            lines.append(f"file '{image.name}'")
            lines.append(f"duration {max(duration, 0.04):.3f}")
        # The concat demuxer ignores the duration of the final entry
        if images:
            lines.append(f"file '{images[-1].name}'")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def build_command(
        self,
        concat_list: Path,
        audio: Path,
        subtitles: Path,
        output: Path,
        resolution: tuple[int, int],
    ) -> list[str]:
        width, height = resolution
        video_filter = (
            f"scale={width}:{height}:force_original_aspect_ratio=increase,"
            f"crop={width}:{height},setsar=1,fps={self.fps},"
            f"ass={subtitles.name}"
        )
        return [
            self.ffmpeg,
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", concat_list.name,
            "-i", audio.name,
            "-vf", video_filter,
            "-c:v", "libx264",
            "-preset", self.preset,
            "-pix_fmt", "yuv420p",
            "-c:a", "aac",
            "-b:a", "192k",
            "-shortest",
            output.name,
        ]

    def render(self, request: RenderRequest) -> bytes:
        if not request.images:
            raise CollaboratorError("Nothing to render: no images supplied")
        if len(request.images) != len(request.durations):
            raise CollaboratorError(
                f"Image/duration mismatch: {len(request.images)} images, "
                f"{len(request.durations)} durations"
            )

        start_time = time.perf_counter()
        with tempfile.TemporaryDirectory(prefix="reelforge_") as tmp:
            workdir = Path(tmp)
            image_paths = []
            for i, image in enumerate(request.images):
                path = workdir / f"image_{i:03d}.png"
                path.write_bytes(image)
                image_paths.append(path)

            audio = workdir / f"narration.{request.audio_format}"
            audio.write_bytes(request.audio)
            subtitles = workdir / "captions.ass"
            subtitles.write_text(request.subtitles, encoding="utf-8")
            concat_list = workdir / "images.txt"
            self.write_concat_list(concat_list, image_paths, request.durations)
            output = workdir / "video.mp4"

            cmd = self.build_command(concat_list, audio, subtitles, output, request.resolution)
            run_ffmpeg(cmd, self.timeout, "Video rendering", cwd=workdir)
            if not output.exists():
                raise CollaboratorError("Video rendering produced no output")
            data = output.read_bytes()

        elapsed = time.perf_counter() - start_time
        logger.info(f"Rendered {len(request.images)} images in {elapsed:.1f}s")
        return data
