"""Subtitles stage: caption track for the aligned storyboard."""

from __future__ import annotations

import logging

from reelforge.captions import build_caption_track
from reelforge.models.schema import Stage
from reelforge.stages.base import StageContext, StageHandler, StageOutcome, load_storyboard

logger = logging.getLogger(__name__)


def subtitles_key(project_id: str) -> str:
    return f"{project_id}_subtitles.ass"


class SubtitlesHandler(StageHandler):
    """Encode the channel-styled ASS captions."""

    stage = Stage.SUBTITLES
    description = "Caption track encoding"

    def run(self, context: StageContext) -> StageOutcome:
        segments = load_storyboard(context.require_output(Stage.AUDIO), Stage.AUDIO)
        profile = context.profile
        track = build_caption_track(segments, profile.subtitle_style, profile.format)
        document = track.render()

        key = subtitles_key(context.project.id)
        context.collaborators.blobs.put(key, document.encode("utf-8"))
        logger.info(f"Encoded {len(track.events)} caption events for project {context.project.id}")
        return StageOutcome(
            payload={
                "blob_key": key,
                "format": "ass",
                "event_count": len(track.events),
                "document": document,
            }
        )
