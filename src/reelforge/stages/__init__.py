"""Stage handlers for the Reelforge pipeline.

Each stage produces one ``stage_data`` entry:
- reference: optional reference transcript, held for review
- script: narration, metadata and the estimated storyboard
- audio: synthesized narration and the audio-aligned storyboard
- audio_compress: compressed narration copy
- subtitles: ASS caption track
- images: one generated image per segment
- render: final video
"""

from __future__ import annotations

from reelforge.models.schema import Stage
from reelforge.stages.audio import AudioHandler
from reelforge.stages.base import StageContext, StageHandler, StageOutcome
from reelforge.stages.compress import AudioCompressHandler
from reelforge.stages.images import ImagesHandler
from reelforge.stages.reference import ReferenceHandler
from reelforge.stages.render import RenderHandler
from reelforge.stages.script import ScriptHandler
from reelforge.stages.subtitles import SubtitlesHandler


def default_handlers() -> dict[Stage, StageHandler]:
    """The built-in handler for every stage except DONE."""
    handlers: list[StageHandler] = [
        ReferenceHandler(),
        ScriptHandler(),
        AudioHandler(),
        AudioCompressHandler(),
        SubtitlesHandler(),
        ImagesHandler(),
        RenderHandler(),
    ]
    return {handler.stage: handler for handler in handlers}


__all__ = [
    "AudioCompressHandler",
    "AudioHandler",
    "ImagesHandler",
    "ReferenceHandler",
    "RenderHandler",
    "ScriptHandler",
    "StageContext",
    "StageHandler",
    "StageOutcome",
    "SubtitlesHandler",
    "default_handlers",
]
