"""Reference stage: ingest the transcript of a model video.

Reference material is optional. Without it the stage short-circuits and the
project moves straight on to scripting. With it, the transcript (supplied
or extracted) is held at REVIEW until a person approves it.
"""

from __future__ import annotations

import logging

from reelforge.errors import CollaboratorError
from reelforge.models.schema import Stage
from reelforge.stages.base import StageContext, StageHandler, StageOutcome, require_collaborator

logger = logging.getLogger(__name__)

# Provenance fields copied from the extractor's metadata onto the reference entry.
PROVENANCE_FIELDS = ("title", "description", "view_count", "duration", "channel_name", "date")


class ReferenceHandler(StageHandler):
    """Fetch and stage a reference transcript for human review."""

    stage = Stage.REFERENCE
    description = "Reference transcript ingestion"

    def _needs_extraction(self, context: StageContext) -> bool:
        reference = context.project.stage_output(self.stage) or {}
        return bool(reference.get("video_id")) and not (reference.get("transcript") or "").strip()

    def validate(self, context: StageContext) -> None:
        if self._needs_extraction(context):
            context.config.require_apify_token()
            require_collaborator(context.collaborators.transcripts, "transcript extractor", self.stage)

    def run(self, context: StageContext) -> StageOutcome:
        reference = dict(context.project.stage_output(self.stage) or {})
        transcript = (reference.get("transcript") or "").strip()
        video_id = reference.get("video_id")

        if not transcript and not video_id:
            logger.info(f"No reference material for project {context.project.id}; skipping")
            return StageOutcome(payload={"skipped": True})

        if not transcript:
            extractor = require_collaborator(
                context.collaborators.transcripts, "transcript extractor", self.stage
            )
            logger.info(f"Extracting transcript for reference video {video_id}")
            result = extractor.extract(video_id, context.config.require_apify_token())
            transcript = (result.transcript or "").strip()
            if not transcript:
                raise CollaboratorError(
                    f"Transcript extractor returned no text for video {video_id}; "
                    "the video may not have captions",
                    stage=self.stage.value,
                )
            for name in PROVENANCE_FIELDS:
                if result.metadata.get(name) is not None:
                    reference[name] = result.metadata[name]
            reference["extracted_metadata"] = result.metadata
            logger.info(f"Extracted {len(transcript)} characters of transcript")

        reference["transcript"] = transcript
        reference["skipped"] = False
        return StageOutcome(payload=reference, review=True)
