"""Images stage: one generated visual per storyboard segment."""

from __future__ import annotations

import logging

from reelforge.errors import CollaboratorError
from reelforge.models.schema import SegmentAssets, Stage
from reelforge.stages.base import (
    StageContext,
    StageHandler,
    StageOutcome,
    dump_storyboard,
    load_storyboard,
    require_collaborator,
)

logger = logging.getLogger(__name__)


def image_key(project_id: str, position: int) -> str:
    """Blob key of the image for the 1-based segment ``position``."""
    return f"{project_id}_image_{position:03d}.png"


class ImagesHandler(StageHandler):
    """Generate an image for every segment's visual prompt.

    A segment that gets no image is recorded as missing rather than failing
    the stage; the renderer reuses a neighbouring image for it.
    """

    stage = Stage.IMAGES
    description = "Image generation"

    def validate(self, context: StageContext) -> None:
        require_collaborator(context.collaborators.images, "image generator", self.stage)

    def run(self, context: StageContext) -> StageOutcome:
        generator = require_collaborator(context.collaborators.images, "image generator", self.stage)
        segments = load_storyboard(context.require_output(Stage.AUDIO), Stage.AUDIO)
        aspect_ratio = context.profile.format.aspect_ratio
        blobs = context.collaborators.blobs

        missing: list[int] = []
        with_assets = []
        for position, seg in enumerate(segments, start=1):
            payloads = generator.generate_images(seg.visual_prompt, aspect_ratio)
            if not payloads:
                logger.warning(f"No image returned for segment {seg.id}")
                missing.append(seg.id)
                with_assets.append(seg)
                continue
            key = image_key(context.project.id, position)
            blobs.put(key, payloads[0])
            assets = (seg.assets or SegmentAssets()).model_copy(update={"image_key": key})
            with_assets.append(seg.model_copy(update={"assets": assets}))

        generated = len(segments) - len(missing)
        if generated == 0:
            raise CollaboratorError(
                f"Image generator returned no images for {len(segments)} segments",
                stage=self.stage.value,
            )
        logger.info(f"Generated {generated}/{len(segments)} images ({aspect_ratio})")
        return StageOutcome(
            payload={
                "aspect_ratio": aspect_ratio,
                "image_count": generated,
                "missing_segments": missing,
                "storyboard": dump_storyboard(with_assets),
                "provider": context.config.providers.image,
            }
        )
