"""Script stage: narration, publishing metadata and the initial storyboard."""

from __future__ import annotations

import logging

from reelforge.errors import CollaboratorError, ValidationError
from reelforge.models.schema import ScriptChunk, Stage, StoryboardSegment
from reelforge.stages.base import (
    StageContext,
    StageHandler,
    StageOutcome,
    dump_storyboard,
    require_collaborator,
)
from reelforge.timing.aligner import format_time_range
from reelforge.timing.chunker import chunk_script, normalize_script

logger = logging.getLogger(__name__)


def expand_prompt(prompt: str, visual_style: str) -> str:
    """Append the channel's visual style to an image prompt."""
    prompt = prompt.strip()
    if not visual_style.strip():
        return prompt
    return f"{prompt} --style {visual_style.strip()}"


def build_storyboard(
    chunks: list[ScriptChunk],
    visual_prompts: list[str],
    visual_style: str = "",
) -> list[StoryboardSegment]:
    """One segment per chunk, timed by the chunk estimates.

    Prompts are assigned round-robin when there are fewer prompts than chunks.
    """
    segments: list[StoryboardSegment] = []
    current = 0.0
    for index, chunk in enumerate(chunks):
        prompt = visual_prompts[index % len(visual_prompts)] if visual_prompts else chunk.text
        start, current = current, current + chunk.duration_estimate
        segments.append(
            StoryboardSegment(
                id=chunk.id,
                time_range=format_time_range(start, current),
                duration=chunk.duration_estimate,
                script_text=chunk.text,
                visual_prompt=expand_prompt(prompt, visual_style),
            )
        )
    return segments


class ScriptHandler(StageHandler):
    """Generate narration and cut it into storyboard segments."""

    stage = Stage.SCRIPT
    description = "Script generation and chunking"

    def validate(self, context: StageContext) -> None:
        require_collaborator(context.collaborators.script_generator, "script generator", self.stage)

    def run(self, context: StageContext) -> StageOutcome:
        generator = require_collaborator(
            context.collaborators.script_generator, "script generator", self.stage
        )
        reference = context.project.stage_output(Stage.REFERENCE) or {}
        reference_transcript = None if reference.get("skipped") else reference.get("transcript")

        generated = generator.generate_script(
            context.profile.persona,
            context.project.theme,
            reference_transcript,
        )
        text = normalize_script(generated.text or "")
        if not text:
            raise CollaboratorError("Script generator returned empty narration", stage=self.stage.value)

        options = context.config.chunking
        chunks = chunk_script(
            text,
            words_per_second=options.words_per_second,
            min_seconds=options.min_seconds,
            max_seconds=options.max_seconds,
        )
        if not chunks:
            raise ValidationError("Narration produced no script chunks")

        prompts = [p for p in generated.visual_prompts if p and p.strip()]
        storyboard = build_storyboard(chunks, prompts, context.profile.visual_style)
        metadata = generator.generate_metadata(text)

        logger.info(
            f"Script ready: {len(text)} chars, {len(chunks)} chunks, "
            f"{len(prompts)} prompts, title={metadata.title!r}"
        )
        return StageOutcome(
            payload={
                "text": text,
                "word_count": len(text.split()),
                "visual_prompts": prompts,
                "chunks": [chunk.model_dump(mode="json") for chunk in chunks],
                "storyboard": dump_storyboard(storyboard),
                "title": metadata.title,
                "description": metadata.description,
                "tags": list(metadata.tags),
                "thumbnail_text": metadata.thumbnail_text,
                "used_reference": bool(reference_transcript),
                "provider": context.config.providers.scripting,
            }
        )
