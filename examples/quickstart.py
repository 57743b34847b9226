#!/usr/bin/env python3
"""Reelforge Quickstart Example.

This script runs a project through every stage with stand-in generators:
narration is a fixed paragraph about the theme, speech is silence and each
image is a solid-colour frame. Compression and rendering use FFmpeg.

Usage:
    python examples/quickstart.py "Deep sea creatures"

Requirements:
    - FFmpeg on PATH for the AUDIO_COMPRESS and RENDER stages
"""

from __future__ import annotations

import struct
import sys
import zlib
from pathlib import Path

from reelforge.models.schema import ChannelProfile, VideoMetadata
from reelforge.ports import GeneratedScript, ImageGenerator, ScriptGenerator, SpeechSynthesizer

COLOURS = [(16, 42, 67), (8, 76, 97), (219, 80, 74)]


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


class ParagraphWriter(ScriptGenerator):
    def generate_script(self, persona, theme, reference_transcript=None):
        sentences = [
            f"Today we look at {theme}.",
            "It is stranger than most people expect, and the details are worth a closer look.",
            "Scientists keep finding new surprises every single year, often by accident.",
            "Some of what they found changed how we think about life itself.",
            "Stay until the end to see the most surprising one of all.",
        ]
        return GeneratedScript(text=" ".join(sentences * 2), visual_prompts=[theme, f"{theme} close-up"])

    def generate_metadata(self, script_text):
        return VideoMetadata(title=script_text.split(".")[0], tags=["quickstart"])


class Silence(SpeechSynthesizer):
    def synthesize(self, text, voice_id):
        seconds = len(text.split()) / 2.5
        return b"\x00\x00" * int(24000 * seconds)


class SolidFrames(ImageGenerator):
    def __init__(self) -> None:
        self.count = 0

    def generate_images(self, prompt, aspect_ratio):
        self.count += 1
        size = (270, 480) if aspect_ratio == "9:16" else (480, 270)
        return [solid_png(*size, COLOURS[self.count % len(COLOURS)])]


def main() -> None:
    """Run the quickstart example."""
    import reelforge
    from reelforge.adapters import StaticProfileProvider, build_pipeline

    if len(sys.argv) < 2:
        print("Usage: python quickstart.py <theme>")
        print("\nExample:")
        print('  python quickstart.py "Deep sea creatures"')
        sys.exit(1)

    theme = sys.argv[1]
    data_dir = Path("./reelforge_quickstart")
    profile = ChannelProfile(id="demo", persona="Curious narrator", voice_id="demo-voice")

    print(f"Reelforge v{reelforge.__version__}")
    print(f"Theme: {theme}")
    print("-" * 50)

    pipeline = build_pipeline(
        reelforge.EngineConfig(data_dir=str(data_dir)),
        profiles=StaticProfileProvider([profile]),
        script_generator=ParagraphWriter(),
        speech=Silence(),
        images=SolidFrames(),
    )

    project = pipeline.create_project(profile.id, theme)
    project = pipeline.run_until_blocked(project.id, show_progress=True)

    print(f"\nProject: {project.id}")
    print(f"Stage: {project.current_stage.value} [{project.status.value}]")
    if project.error_message:
        print(f"Error: {project.error_message}")
        sys.exit(1)

    script = project.stage_data["script"]
    audio = project.stage_data["audio"]
    print(f"Title: {script['title']}")
    print(f"Narration: {audio['duration']:.1f}s across {len(audio['storyboard'])} segments")
    print(f"Video: {data_dir / 'blobs' / project.stage_data['render']['blob_key']}")


if __name__ == "__main__":
    main()
