"""Collaborator interfaces consumed by the stage handlers.

Handlers depend only on these abstractions; concrete providers live in
``reelforge.adapters`` or are supplied by the application embedding the
engine. Every call may be slow (seconds to tens of seconds) and the engine
does not time them out; retry or polling policy belongs to the adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from reelforge.models.schema import ChannelProfile, VideoMetadata


@dataclass
class GeneratedScript:
    """Narration and visual prompts returned by a script generator."""

    text: str
    visual_prompts: list[str] = field(default_factory=list)


@dataclass
class ExtractedTranscript:
    """Plain transcript plus provenance metadata from a transcript extractor."""

    transcript: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RenderRequest:
    """Everything a renderer needs to assemble the final video."""

    audio: bytes
    audio_format: str
    subtitles: str
    images: list[bytes]
    durations: list[float]
    resolution: tuple[int, int]


class ProfileProvider(ABC):
    """Read-only source of channel profiles."""

    @abstractmethod
    def get_profile(self, channel_id: str) -> ChannelProfile | None:
        """Return the channel's profile, or None if unknown."""
        pass


class ScriptGenerator(ABC):
    """Text generation for narration and publishing metadata."""

    @abstractmethod
    def generate_script(
        self,
        persona: str,
        theme: str,
        reference_transcript: str | None = None,
    ) -> GeneratedScript:
        """Write narration for a theme in the channel's persona."""
        pass

    @abstractmethod
    def generate_metadata(self, script_text: str) -> VideoMetadata:
        """Derive title, description, tags and thumbnail text from narration."""
        pass


class SpeechSynthesizer(ABC):
    """Text-to-speech returning raw mono 16-bit PCM without a container."""

    @abstractmethod
    def synthesize(self, text: str, voice_id: str) -> bytes:
        pass


class ImageGenerator(ABC):
    """Image generation from an expanded visual prompt."""

    @abstractmethod
    def generate_images(self, prompt: str, aspect_ratio: str) -> list[bytes]:
        """Return zero or more encoded images (PNG/JPEG bytes)."""
        pass


class TranscriptExtractor(ABC):
    """Extraction of a reference video's transcript."""

    @abstractmethod
    def extract(self, source_id: str, token: str) -> ExtractedTranscript:
        pass


class AudioCompressor(ABC):
    """Lossy compression of the narration WAV."""

    format: str = "mp3"

    @abstractmethod
    def compress(self, wav: bytes, bitrate_kbps: int) -> bytes:
        pass


class VideoRenderer(ABC):
    """Assembly of images, narration and captions into a video file."""

    @abstractmethod
    def render(self, request: RenderRequest) -> bytes:
        pass


class BlobStore(ABC):
    """Key-value storage for binary artifacts (audio, images, video)."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        pass

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key does not exist."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


@dataclass
class Collaborators:
    """The set of collaborators available to stage handlers.

    Generators are optional; a stage whose collaborator is missing fails
    with a configuration error before doing anything.
    """

    profiles: ProfileProvider
    blobs: BlobStore
    script_generator: ScriptGenerator | None = None
    speech: SpeechSynthesizer | None = None
    images: ImageGenerator | None = None
    transcripts: TranscriptExtractor | None = None
    compressor: AudioCompressor | None = None
    renderer: VideoRenderer | None = None
