"""Fake collaborators shared by the unit tests."""

from __future__ import annotations

from reelforge.models.schema import VideoMetadata
from reelforge.ports import (
    AudioCompressor,
    ExtractedTranscript,
    GeneratedScript,
    ImageGenerator,
    RenderRequest,
    ScriptGenerator,
    SpeechSynthesizer,
    TranscriptExtractor,
    VideoRenderer,
)

SAMPLE_RATE = 24000

NARRATION = (
    "The ocean hides more than we know. Below two hundred meters sunlight fades and a "
    "strange world begins, where animals make their own light to hunt, to hide and to "
    "find each other in the dark. Anglerfish dangle glowing lures in front of their jaws. "
    "Vampire squid turn themselves inside out when threatened. Some jellyfish flash like "
    "burglar alarms to call bigger predators onto whoever is attacking them. Scientists "
    "have explored less of this zone than the surface of the moon, and every expedition "
    "still returns with species nobody has ever seen before."
)


class FakeScriptGenerator(ScriptGenerator):
    def __init__(self, text: str = NARRATION, prompts: list[str] | None = None) -> None:
        self.text = text
        self.prompts = ["deep sea", "anglerfish"] if prompts is None else prompts
        self.calls: list[tuple] = []

    def generate_script(self, persona, theme, reference_transcript=None):
        self.calls.append((persona, theme, reference_transcript))
        return GeneratedScript(text=self.text, visual_prompts=list(self.prompts))

    def generate_metadata(self, script_text):
        return VideoMetadata(
            title="Lights of the Abyss",
            description="Bioluminescence explained",
            tags=["ocean", "science"],
            thumbnail_text="GLOW",
        )


class FakeSpeech(SpeechSynthesizer):
    """Returns silent PCM of a fixed length."""

    def __init__(self, seconds: float = 30.0) -> None:
        self.seconds = seconds
        self.calls: list[tuple[str, str]] = []

    def synthesize(self, text, voice_id):
        self.calls.append((text, voice_id))
        return b"\x00\x00" * int(SAMPLE_RATE * self.seconds)


class FakeImages(ImageGenerator):
    def __init__(self, empty_for: set[int] | None = None) -> None:
        self.empty_for = empty_for or set()
        self.calls: list[tuple[str, str]] = []

    def generate_images(self, prompt, aspect_ratio):
        self.calls.append((prompt, aspect_ratio))
        if len(self.calls) in self.empty_for:
            return []
        return [f"png-{len(self.calls)}".encode()]


class FakeExtractor(TranscriptExtractor):
    def __init__(self, transcript: str = "A reference transcript.") -> None:
        self.transcript = transcript
        self.calls: list[tuple[str, str]] = []

    def extract(self, source_id, token):
        self.calls.append((source_id, token))
        return ExtractedTranscript(
            transcript=self.transcript,
            metadata={"title": "Reference video", "view_count": 1200, "channel_name": "Deep"},
        )


class FakeCompressor(AudioCompressor):
    def compress(self, wav, bitrate_kbps):
        return wav[: len(wav) // 10]


class FakeRenderer(VideoRenderer):
    def __init__(self) -> None:
        self.requests: list[RenderRequest] = []

    def render(self, request):
        self.requests.append(request)
        return b"mp4-video"


