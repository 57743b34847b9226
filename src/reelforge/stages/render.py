"""Render stage: assemble images, narration and captions into the video."""

from __future__ import annotations

import logging

from reelforge.errors import CollaboratorError, ValidationError
from reelforge.models.schema import Stage, StoryboardSegment
from reelforge.ports import RenderRequest
from reelforge.stages.base import (
    StageContext,
    StageHandler,
    StageOutcome,
    load_storyboard,
    require_collaborator,
)

logger = logging.getLogger(__name__)


def video_key(project_id: str) -> str:
    return f"{project_id}_video.mp4"


def fill_image_keys(segments: list[StoryboardSegment]) -> list[str]:
    """Image key per segment, borrowing the nearest earlier image for gaps.

    Leading gaps borrow the first available image.
    """
    keys = [seg.assets.image_key if seg.assets else None for seg in segments]
    available = [key for key in keys if key]
    if not available:
        raise ValidationError("No segment has an image to render")
    filled: list[str] = []
    previous = available[0]
    for key in keys:
        previous = key or previous
        filled.append(previous)
    return filled


class RenderHandler(StageHandler):
    """Hand the finished assets to the video renderer."""

    stage = Stage.RENDER
    description = "Video rendering"

    def validate(self, context: StageContext) -> None:
        require_collaborator(context.collaborators.renderer, "video renderer", self.stage)

    def run(self, context: StageContext) -> StageOutcome:
        renderer = require_collaborator(context.collaborators.renderer, "video renderer", self.stage)
        audio = context.require_output(Stage.AUDIO)
        subtitles = context.require_output(Stage.SUBTITLES)
        segments = load_storyboard(context.require_output(Stage.IMAGES), Stage.IMAGES)

        compressed = context.project.stage_output(Stage.AUDIO_COMPRESS)
        if compressed and context.collaborators.blobs.exists(compressed["blob_key"]):
            narration = context.require_blob(compressed["blob_key"])
            audio_format = compressed.get("format", "mp3")
        else:
            narration = context.require_blob(audio["blob_key"])
            audio_format = "wav"

        loaded: dict[str, bytes] = {}
        images: list[bytes] = []
        for key in fill_image_keys(segments):
            if key not in loaded:
                loaded[key] = context.require_blob(key)
            images.append(loaded[key])

        request = RenderRequest(
            audio=narration,
            audio_format=audio_format,
            subtitles=context.require_blob(subtitles["blob_key"]).decode("utf-8"),
            images=images,
            durations=[seg.duration for seg in segments],
            resolution=context.profile.format.resolution,
        )
        video = renderer.render(request)
        if not video:
            raise CollaboratorError("Renderer produced an empty video", stage=self.stage.value)

        key = video_key(context.project.id)
        context.collaborators.blobs.put(key, video)
        logger.info(f"Rendered {len(segments)} segments into {len(video) / 1024 / 1024:.2f} MB video")
        return StageOutcome(
            payload={
                "blob_key": key,
                "byte_size": len(video),
                "duration": audio.get("duration"),
                "segment_count": len(segments),
                "audio_format": audio_format,
            }
        )
