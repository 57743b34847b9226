"""Pydantic models defining the Reelforge data schema.

A ``Project`` is the persisted record the engine advances stage by stage.
Stage outputs accumulate in ``Project.stage_data`` keyed by ``Stage.key``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    """Pipeline stages in their fixed processing order."""

    REFERENCE = "REFERENCE"
    SCRIPT = "SCRIPT"
    AUDIO = "AUDIO"
    AUDIO_COMPRESS = "AUDIO_COMPRESS"
    SUBTITLES = "SUBTITLES"
    IMAGES = "IMAGES"
    RENDER = "RENDER"
    DONE = "DONE"

    @classmethod
    def ordered(cls) -> list[Stage]:
        """All stages in processing order."""
        return list(cls)

    @property
    def key(self) -> str:
        """The ``stage_data`` key this stage writes."""
        return self.value.lower()

    @property
    def position(self) -> int:
        return Stage.ordered().index(self)

    def next(self) -> Stage:
        """The stage that follows this one.

        Raises:
            ValueError: If called on the terminal stage.
        """
        stages = Stage.ordered()
        if self is stages[-1]:
            raise ValueError(f"{self.value} is the last stage")
        return stages[self.position + 1]


class ProjectStatus(str, Enum):
    """Run status of a project at its current stage."""

    READY = "ready"
    PROCESSING = "processing"
    REVIEW = "review"
    ERROR = "error"


class VideoFormat(str, Enum):
    """Target output format of a channel."""

    SHORTS = "SHORTS"
    LONG_FORM = "LONG_FORM"

    @property
    def is_vertical(self) -> bool:
        return self is VideoFormat.SHORTS

    @property
    def aspect_ratio(self) -> str:
        return "9:16" if self.is_vertical else "16:9"

    @property
    def resolution(self) -> tuple[int, int]:
        """Canvas size as (width, height)."""
        return (1080, 1920) if self.is_vertical else (1920, 1080)


class CaptionAlignment(str, Enum):
    """Vertical placement of captions."""

    BOTTOM = "BOTTOM"
    CENTER = "CENTER"
    TOP = "TOP"


class SubtitleStyle(BaseModel):
    """Caption styling owned by a channel profile."""

    font_name: str = Field(default="Montserrat ExtraBold", description="Font family")
    font_size: int = Field(
        default=100, gt=0, description="Size as a percentage of the format's base size"
    )
    primary_color: str = Field(
        default="#FFFFFF", pattern=HEX_COLOR_PATTERN, description="Text color (#RRGGBB)"
    )
    outline_color: str = Field(
        default="#000000", pattern=HEX_COLOR_PATTERN, description="Outline color (#RRGGBB)"
    )
    alignment: CaptionAlignment = Field(
        default=CaptionAlignment.BOTTOM, description="Vertical caption placement"
    )


class ChannelProfile(BaseModel):
    """Channel settings read by the stages. Owned by an external profile provider."""

    id: str = Field(..., description="Channel identifier")
    name: str = Field(default="", description="Display name")
    persona: str = Field(default="", description="Narrator persona handed to the script generator")
    visual_style: str = Field(default="", description="Style suffix for image prompts")
    voice_id: str = Field(default="", description="Speech synthesizer voice")
    subtitle_style: SubtitleStyle = Field(default_factory=SubtitleStyle)
    format: VideoFormat = Field(default=VideoFormat.SHORTS)


class ScriptChunk(BaseModel):
    """A span of narration sized for one on-screen visual."""

    id: int = Field(..., ge=1, description="1-based position in the script")
    text: str = Field(..., description="Chunk text, words joined by single spaces")
    word_count: int = Field(..., ge=0)
    duration_estimate: float = Field(..., ge=0, description="Estimated seconds of speech")


class SegmentAssets(BaseModel):
    """Blob references attached to a storyboard segment."""

    image_key: str | None = None


class StoryboardSegment(BaseModel):
    """A timed storyboard entry pairing narration with a visual prompt."""

    id: int = Field(..., ge=1)
    time_range: str = Field(default="", description="Display range, e.g. '00:00.0 - 00:09.2'")
    duration: float = Field(..., ge=0, description="Duration in seconds")
    script_text: str = Field(..., description="Narration spoken during this segment")
    visual_prompt: str = Field(default="", description="Expanded image prompt")
    assets: SegmentAssets | None = None


class VideoMetadata(BaseModel):
    """Publishing metadata derived from the narration."""

    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    thumbnail_text: str = ""


class Project(BaseModel):
    """A video being produced, advanced one stage per run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    channel_id: str = Field(..., description="Channel whose profile drives generation")
    title: str = Field(default="", description="Working title")
    theme: str = Field(default="", description="Topic requested for this video")
    current_stage: Stage = Field(default=Stage.REFERENCE)
    status: ProjectStatus = Field(default=ProjectStatus.READY)
    stage_data: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-stage outputs keyed by Stage.key"
    )
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    lease_token: str | None = Field(default=None, description="Token of the run holding the lease")
    lease_expires_at: datetime | None = None

    def is_leased(self, now: datetime | None = None) -> bool:
        """Whether an unexpired lease is held on this project."""
        if self.lease_token is None:
            return False
        if self.lease_expires_at is None:
            return True
        return self.lease_expires_at > (now or utcnow())

    def stage_output(self, stage: Stage) -> dict[str, Any] | None:
        """The persisted output of a stage, if it has one."""
        return self.stage_data.get(stage.key)
