"""Audio stage: narration synthesis and storyboard alignment."""

from __future__ import annotations

import logging

from reelforge.audio import pcm_duration, pcm_to_wav
from reelforge.errors import CollaboratorError, ConfigurationError, ValidationError
from reelforge.models.schema import Stage
from reelforge.stages.base import (
    StageContext,
    StageHandler,
    StageOutcome,
    dump_storyboard,
    load_storyboard,
    require_collaborator,
)
from reelforge.timing.aligner import align_to_audio

logger = logging.getLogger(__name__)


def narration_key(project_id: str) -> str:
    """Blob key of the uncompressed narration WAV."""
    return project_id


class AudioHandler(StageHandler):
    """Synthesize the narration and fit the storyboard to its duration."""

    stage = Stage.AUDIO
    description = "Speech synthesis"

    def validate(self, context: StageContext) -> None:
        require_collaborator(context.collaborators.speech, "speech synthesizer", self.stage)
        if not context.profile.voice_id.strip():
            raise ConfigurationError(
                f"Channel {context.profile.id} has no voice configured; set voice_id on its profile"
            )

    def run(self, context: StageContext) -> StageOutcome:
        speech = require_collaborator(context.collaborators.speech, "speech synthesizer", self.stage)
        script = context.require_output(Stage.SCRIPT)
        text = (script.get("text") or "").strip()
        if not text:
            raise ValidationError("Script output has no narration text")
        storyboard = load_storyboard(script, Stage.SCRIPT)

        voice_id = context.profile.voice_id
        logger.info(f"Synthesizing {len(text)} chars with voice {voice_id}")
        pcm = speech.synthesize(text, voice_id)
        if not pcm:
            raise CollaboratorError("Speech synthesizer returned no audio", stage=self.stage.value)

        sample_rate = context.config.speech_sample_rate
        wav = pcm_to_wav(pcm, sample_rate)
        duration = pcm_duration(len(pcm), sample_rate)
        if duration <= 0:
            raise CollaboratorError("Synthesized audio has zero duration", stage=self.stage.value)

        key = narration_key(context.project.id)
        context.collaborators.blobs.put(key, wav)
        aligned = align_to_audio(storyboard, duration)
        logger.info(f"Narration is {duration:.2f}s; aligned {len(aligned)} segments")

        return StageOutcome(
            payload={
                "blob_key": key,
                "duration": duration,
                "sample_rate": sample_rate,
                "byte_size": len(wav),
                "voice_id": voice_id,
                "provider": context.config.providers.tts,
                "storyboard": dump_storyboard(aligned),
            }
        )
