"""Audio compression stage: WAV narration to a compact MP3 copy."""

from __future__ import annotations

import logging

from reelforge.errors import CollaboratorError
from reelforge.models.schema import Stage
from reelforge.stages.base import StageContext, StageHandler, StageOutcome, require_collaborator

logger = logging.getLogger(__name__)


def compressed_key(project_id: str) -> str:
    return f"{project_id}_compressed"


class AudioCompressHandler(StageHandler):
    """Store a compressed copy of the narration next to the original."""

    stage = Stage.AUDIO_COMPRESS
    description = "Audio compression"

    def validate(self, context: StageContext) -> None:
        require_collaborator(context.collaborators.compressor, "audio compressor", self.stage)

    def run(self, context: StageContext) -> StageOutcome:
        compressor = require_collaborator(
            context.collaborators.compressor, "audio compressor", self.stage
        )
        audio = context.require_output(Stage.AUDIO)
        wav = context.require_blob(audio["blob_key"])
        bitrate = context.config.audio_bitrate_kbps

        compressed = compressor.compress(wav, bitrate)
        if not compressed:
            raise CollaboratorError("Audio compressor produced an empty file", stage=self.stage.value)

        key = compressed_key(context.project.id)
        context.collaborators.blobs.put(key, compressed)
        ratio = round((1 - len(compressed) / len(wav)) * 100)
        logger.info(
            f"Compressed narration {len(wav) / 1024 / 1024:.2f} MB -> "
            f"{len(compressed) / 1024 / 1024:.2f} MB ({ratio}% smaller)"
        )
        return StageOutcome(
            payload={
                "blob_key": key,
                "original_size": len(wav),
                "compressed_size": len(compressed),
                "compression_ratio": ratio,
                "format": compressor.format,
                "bitrate": bitrate,
            }
        )
